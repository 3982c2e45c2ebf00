"""Search support for ashdi.vip."""
from __future__ import annotations

import re

from .common import PatternHostSearcher


class AshdiSearcher(PatternHostSearcher):
    """Ashdi serves numeric ids under both /vod/ and /embed/."""

    name = "ashdi.vip"
    label = "Ashdi"
    PATTERNS = (
        re.compile(r"/vod/(\d+)"),
        re.compile(r"/embed/(\d+)"),
    )

    def build_link(self, video_id: str) -> str:
        return f"https://ashdi.vip/vod/{video_id}"


__all__ = ["AshdiSearcher"]
