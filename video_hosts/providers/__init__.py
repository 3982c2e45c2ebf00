"""Host searcher implementations."""

from .ashdi import AshdiSearcher
from .tortuga import TortugaSearcher
from .vidstreaming import VidstreamingSearcher

__all__ = ["AshdiSearcher", "TortugaSearcher", "VidstreamingSearcher"]
