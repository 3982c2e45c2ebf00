"""Shared search-page parsing for hosts that expose numeric or slug video ids."""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup

from config import HOST_SEARCH_TIMEOUT

from ..base import HostSearchResult

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
LINK_ATTRIBUTES = ("href", "src", "data-src", "data-link")


class PatternHostSearcher:
    """Search a host and pull video ids out of its result page."""

    name = ""
    label = ""
    SEARCH_URL = "https://{host}/search?q={query}"
    PATTERNS: Sequence[re.Pattern] = ()

    def search_url(self, query: str) -> Optional[str]:
        if not query or not query.strip():
            return None
        return self.SEARCH_URL.format(host=self.name, query=quote(query, safe=""))

    def request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "uk-UA,uk;q=0.9",
            "Referer": f"https://{self.name}/",
        }

    def build_link(self, video_id: str) -> str:
        return f"https://{self.name}/embed/{video_id}"

    def search(self, query: str) -> List[HostSearchResult]:
        url = self.search_url(query)
        if not url:
            return []

        try:
            response = requests.get(
                url,
                headers=self.request_headers(),
                timeout=HOST_SEARCH_TIMEOUT,
                allow_redirects=True,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Error searching on %s: %s", self.name, exc)
            return []

        if not response.text:
            return []

        return [
            HostSearchResult(
                host=self.name,
                query=query,
                url=self.build_link(video_id),
                video_id=video_id,
                search_url=url,
            )
            for video_id in self.extract_video_ids(response.text)
        ]

    def extract_video_ids(self, html: str) -> List[str]:
        soup = BeautifulSoup(html, "html.parser")
        candidates: List[str] = []
        for tag in soup.find_all(True):
            for attribute in LINK_ATTRIBUTES:
                value = tag.get(attribute)
                if isinstance(value, str) and value:
                    candidates.append(value)
        for script in soup.find_all("script"):
            text = script.get_text()
            if text:
                candidates.append(text)
        # Links also sit in text nodes and unlisted data-* attributes.
        candidates.append(html)

        video_ids: List[str] = []
        for pattern in self.PATTERNS:
            for candidate in candidates:
                for match in pattern.finditer(candidate):
                    video_id = match.group(1)
                    if video_id not in video_ids:
                        video_ids.append(video_id)
        return video_ids


__all__ = ["LINK_ATTRIBUTES", "PatternHostSearcher", "USER_AGENT"]
