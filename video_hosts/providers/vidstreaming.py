"""Search support for vidstreaming.io."""
from __future__ import annotations

import re

from .common import PatternHostSearcher


class VidstreamingSearcher(PatternHostSearcher):
    name = "vidstreaming.io"
    label = "Vidstreaming"
    PATTERNS = (re.compile(r"/embed/([a-zA-Z0-9]+)"),)


__all__ = ["VidstreamingSearcher"]
