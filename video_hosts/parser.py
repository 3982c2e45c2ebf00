"""Classification and normalisation of submitted video links."""
from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

SUPPORTED_HOSTS = (
    "ashdi.vip",
    "tortuga.wtf",
    "tortuga.tw",
    "vidstreaming.io",
    "streamtape.com",
    "mixdrop.co",
    "upstream.to",
    "streamlare.com",
    "filemoon.sx",
    "doodstream.com",
    "streamwish.to",
    "streamhub.to",
)

# tortuga.tw links are accepted but play natively rather than in an iframe.
EMBED_HOSTS = tuple(host for host in SUPPORTED_HOSTS if host != "tortuga.tw")

DIRECT_VIDEO_EXTENSIONS = (".mp4", ".m3u8", ".webm", ".mkv", ".avi")

SOURCE_EMBED = "embed"
SOURCE_DIRECT = "direct"
SOURCE_PARSED = "parsed"

DEFAULT_QUALITY = "auto"

_HOSTNAME_PATTERN = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?)(?:\.[a-z0-9](?:[a-z0-9-]*[a-z0-9])?)*$",
    re.IGNORECASE,
)


@dataclass(slots=True)
class ParsedVideoLink:
    """A submitted link after classification."""

    source: str
    url: str
    quality: str = DEFAULT_QUALITY

    def to_dict(self) -> dict:
        return asdict(self)


def is_supported_host(url: str) -> bool:
    return any(host in url for host in SUPPORTED_HOSTS)


def is_embed_host(url: str) -> bool:
    return any(host in url for host in EMBED_HOSTS)


def is_direct_video_url(url: str) -> bool:
    return any(extension in url for extension in DIRECT_VIDEO_EXTENSIONS)


def normalize_url(url: str) -> str:
    normalized = url.strip()
    if normalized.startswith(("http://", "https://")):
        return normalized
    if normalized.startswith("//"):
        return f"https:{normalized}"
    return f"https://{normalized}"


def parse_video_url(url: Optional[str]) -> Optional[ParsedVideoLink]:
    """Classify ``url`` as an embeddable host or a direct video file.

    Links on a known host are always embedded, even when they end in a video
    extension. Unknown hosts fall back to an iframe embed of the normalised URL.
    """

    if not isinstance(url, str) or not url.strip():
        return None

    try:
        if is_supported_host(url):
            return ParsedVideoLink(source=SOURCE_EMBED, url=normalize_url(url))
        if is_direct_video_url(url):
            return ParsedVideoLink(source=SOURCE_DIRECT, url=url)
        return ParsedVideoLink(source=SOURCE_EMBED, url=normalize_url(url))
    except (TypeError, ValueError) as exc:
        logger.warning("Error parsing video URL %r: %s", url, exc)
        return None


def validate_video_url(url: Optional[str]) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False

    if is_supported_host(url) or is_direct_video_url(url):
        return True

    try:
        parsed = urlparse(normalize_url(url))
        hostname = parsed.hostname
    except ValueError:
        return False

    if parsed.scheme not in {"http", "https"} or not hostname:
        return False
    return bool(_HOSTNAME_PATTERN.match(hostname))


def embed_src(url: str) -> str:
    if "ashdi.vip/vod/" in url:
        return normalize_url(url.replace("/vod/", "/embed/"))
    if url.startswith("//"):
        return f"https:{url}"
    return url


def resolve_playback(url: str) -> dict[str, str]:
    """Return how a player should render ``url``: inside an iframe or natively."""

    if is_embed_host(url):
        return {"mode": "iframe", "src": embed_src(url)}
    return {"mode": "player", "src": url}


def _extract_domain(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        parsed = urlparse(normalize_url(url))
    except ValueError:
        return None
    hostname = (parsed.hostname or "").lower().strip()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname or None


def identify_video_host(url: Optional[str]) -> tuple[str, str]:
    """Return a normalized host key and a human-readable display name."""

    display_name = _extract_domain(url) or "Unknown host"
    key = re.sub(r"[^a-z0-9]+", "-", display_name.lower()).strip("-") or "host"
    return key, display_name


__all__ = [
    "DIRECT_VIDEO_EXTENSIONS",
    "ParsedVideoLink",
    "SOURCE_DIRECT",
    "SOURCE_EMBED",
    "SOURCE_PARSED",
    "EMBED_HOSTS",
    "SUPPORTED_HOSTS",
    "embed_src",
    "identify_video_host",
    "is_direct_video_url",
    "is_embed_host",
    "is_supported_host",
    "normalize_url",
    "parse_video_url",
    "resolve_playback",
    "validate_video_url",
]
