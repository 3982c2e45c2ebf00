"""Host search manager responsible for querying every registered video host."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .base import HostSearcher, HostSearchResult
from .providers.ashdi import AshdiSearcher
from .providers.tortuga import TortugaSearcher
from .providers.vidstreaming import VidstreamingSearcher

logger = logging.getLogger(__name__)


class HostSearchManager:
    """Central registry that keeps track of searchable video hosts."""

    def __init__(self) -> None:
        self._searchers: Dict[str, HostSearcher] = {}
        self.register_searcher(AshdiSearcher())
        self.register_searcher(TortugaSearcher())
        self.register_searcher(VidstreamingSearcher())

    def register_searcher(self, searcher: HostSearcher) -> None:
        self._searchers[searcher.name] = searcher

    def get_searcher(self, host: str) -> Optional[HostSearcher]:
        return self._searchers.get(host)

    def available_hosts(self) -> Sequence[HostSearcher]:
        return tuple(self._searchers.values())

    def search_host(self, host: str, query: str) -> Sequence[HostSearchResult]:
        searcher = self.get_searcher(host)
        if searcher is None:
            raise ValueError(f"No searcher registered for host '{host}'.")
        return searcher.search(query)

    def search_video_links(self, title: str, year: Optional[int] = None) -> List[str]:
        """Search every host for ``title`` and return unique links in discovery order."""

        title = (title or "").strip()
        if not title:
            return []

        queries = [
            title,
            f"{title} {year}" if year else title,
            title.lower(),
        ]

        found: List[str] = []
        for query in queries:
            for searcher in self.available_hosts():
                for result in searcher.search(query):
                    if result.url not in found:
                        found.append(result.url)
        logger.info("Host search for %r found %d link(s)", title, len(found))
        return found


_HOST_SEARCH_MANAGER: Optional[HostSearchManager] = None


def get_host_search_manager() -> HostSearchManager:
    global _HOST_SEARCH_MANAGER
    if _HOST_SEARCH_MANAGER is None:
        _HOST_SEARCH_MANAGER = HostSearchManager()
    return _HOST_SEARCH_MANAGER


def search_video_links(title: str, year: Optional[int] = None) -> List[str]:
    return get_host_search_manager().search_video_links(title, year)


__all__ = ["HostSearchManager", "get_host_search_manager", "search_video_links"]
