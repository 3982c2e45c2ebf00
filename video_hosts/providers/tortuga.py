"""Search support for tortuga.wtf."""
from __future__ import annotations

import re

from .common import PatternHostSearcher


class TortugaSearcher(PatternHostSearcher):
    name = "tortuga.wtf"
    label = "Tortuga"
    PATTERNS = (re.compile(r"/embed/([a-zA-Z0-9]+)"),)


__all__ = ["TortugaSearcher"]
