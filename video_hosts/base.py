"""Common types and interfaces for video host searchers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence


@dataclass(slots=True)
class HostSearchResult:
    """Represents a single playable link discovered on a video host."""

    host: str
    query: str
    url: str
    video_id: str
    search_url: Optional[str] = None


class HostSearcher(Protocol):
    """Protocol that every host searcher implementation must follow."""

    name: str
    label: str

    def search_url(self, query: str) -> Optional[str]:
        """Return the search page URL for ``query``."""

    def search(self, query: str) -> Sequence[HostSearchResult]:
        """Search the host and return discovered video links."""


__all__ = ["HostSearcher", "HostSearchResult"]
