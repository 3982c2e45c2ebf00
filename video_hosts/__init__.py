"""Video link classification and host search for Kinoteka."""

from .base import HostSearcher, HostSearchResult
from .manager import HostSearchManager, get_host_search_manager, search_video_links
from .parser import (
    SUPPORTED_HOSTS,
    ParsedVideoLink,
    embed_src,
    identify_video_host,
    is_direct_video_url,
    is_supported_host,
    normalize_url,
    parse_video_url,
    resolve_playback,
    validate_video_url,
)

__all__ = [
    "HostSearcher",
    "HostSearchResult",
    "HostSearchManager",
    "ParsedVideoLink",
    "SUPPORTED_HOSTS",
    "embed_src",
    "get_host_search_manager",
    "identify_video_host",
    "is_direct_video_url",
    "is_supported_host",
    "normalize_url",
    "parse_video_url",
    "resolve_playback",
    "search_video_links",
    "validate_video_url",
]
