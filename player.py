"""Ad insertion timing for the video player.

A :class:`PlaybackSession` mirrors what the browser player does while a title
is playing: it holds the pre-roll overlay until the ads are known, pauses
playback for a single mid-roll break once the playhead reaches the configured
share of the runtime, and shows a post-roll break before reporting the end of
playback. Overlays are closed by :meth:`PlaybackSession.tick`, which compares
deadlines against an injectable clock so the timing can be driven by tests or
by an event loop.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Optional, Sequence

from video_hosts import resolve_playback

logger = logging.getLogger(__name__)

PRE_ROLL = "PRE_ROLL"
MID_ROLL = "MID_ROLL"
POST_ROLL = "POST_ROLL"
BANNER = "BANNER"
AD_TYPES = (PRE_ROLL, MID_ROLL, POST_ROLL, BANNER)

PRE_ROLL_SECONDS = 5
MID_ROLL_SECONDS = 15
POST_ROLL_SECONDS = 10
MID_ROLL_WINDOW_SECONDS = 5

BREAK_LENGTHS = {
    PRE_ROLL: PRE_ROLL_SECONDS,
    MID_ROLL: MID_ROLL_SECONDS,
    POST_ROLL: POST_ROLL_SECONDS,
}


def normalize_ad_type(value: Optional[str]) -> Optional[str]:
    """Map user input such as ``pre-roll`` to the stored ``PRE_ROLL`` form."""

    if not isinstance(value, str):
        return None
    normalized = value.strip().upper().replace("-", "_")
    return normalized if normalized in AD_TYPES else None


def _ad_field(ad: Any, name: str, default: Any = None) -> Any:
    if isinstance(ad, dict):
        return ad.get(name, default)
    return getattr(ad, name, default)


def select_ad(ads: Iterable[Any], ad_type: str) -> Optional[Any]:
    """Return the highest-priority active ad of ``ad_type``.

    Ties keep their input order.
    """

    ranked = sorted(ads, key=lambda ad: -(_ad_field(ad, "priority", 0) or 0))
    for ad in ranked:
        if _ad_field(ad, "type") == ad_type and _ad_field(ad, "is_active", True):
            return ad
    return None


def mid_roll_time(ad: Any, duration: float) -> Optional[float]:
    position = _ad_field(ad, "position")
    if not position or not duration or duration <= 0:
        return None
    return (float(position) / 100.0) * float(duration)


def plan_ad_breaks(ads: Sequence[Any], duration: Optional[float] = None) -> list[dict]:
    breaks: list[dict] = []

    pre_roll = select_ad(ads, PRE_ROLL)
    if pre_roll is not None:
        breaks.append(
            {
                "type": PRE_ROLL,
                "start": 0.0,
                "length": PRE_ROLL_SECONDS,
                "ad_id": _ad_field(pre_roll, "id"),
            }
        )

    mid_roll = select_ad(ads, MID_ROLL)
    if mid_roll is not None and duration:
        start = mid_roll_time(mid_roll, duration)
        if start is not None:
            breaks.append(
                {
                    "type": MID_ROLL,
                    "start": round(start, 3),
                    "length": MID_ROLL_SECONDS,
                    "ad_id": _ad_field(mid_roll, "id"),
                }
            )

    post_roll = select_ad(ads, POST_ROLL)
    if post_roll is not None:
        breaks.append(
            {
                "type": POST_ROLL,
                "start": float(duration) if duration else None,
                "length": POST_ROLL_SECONDS,
                "ad_id": _ad_field(post_roll, "id"),
            }
        )

    return breaks


class PlaybackSession:
    """Player state for one title: current link, progress and ad overlays."""

    def __init__(
        self,
        links: Optional[Sequence[Any]] = None,
        ads: Optional[Sequence[Any]] = None,
        *,
        on_end: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.links = list(links or [])
        self.ads: list[Any] = []
        self.on_end = on_end
        self._clock = clock

        self.playing = False
        self.played = 0.0
        self.duration = 0.0
        self.current_index = 0
        self.show_pre_roll = True
        self.show_mid_roll = False
        self.show_post_roll = False
        self.finished = False

        self._mid_roll_done = False
        self._deadlines: dict[str, float] = {}

        if ads is not None:
            self.load_ads(ads)

    @property
    def is_playing(self) -> bool:
        return self.playing and self.overlay is None

    @property
    def overlay(self) -> Optional[str]:
        if self.show_pre_roll:
            return PRE_ROLL
        if self.show_mid_roll:
            return MID_ROLL
        if self.show_post_roll:
            return POST_ROLL
        return None

    def load_ads(self, ads: Sequence[Any]) -> None:
        self.ads = list(ads)
        if not self.show_pre_roll:
            return
        if select_ad(self.ads, PRE_ROLL) is None:
            self.show_pre_roll = False
            return
        self._deadlines[PRE_ROLL] = self._clock() + PRE_ROLL_SECONDS

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def on_duration(self, seconds: float) -> None:
        self.duration = float(seconds or 0)

    def on_progress(self, played_seconds: float) -> None:
        self.tick()
        self.played = float(played_seconds or 0)
        if self.played <= 0 or self.duration <= 0:
            return
        if self.show_mid_roll or self._mid_roll_done:
            return

        ad = select_ad(self.ads, MID_ROLL)
        if ad is None:
            return
        ad_time = mid_roll_time(ad, self.duration)
        if ad_time is None:
            return
        if ad_time - MID_ROLL_WINDOW_SECONDS <= self.played <= ad_time + MID_ROLL_WINDOW_SECONDS:
            logger.debug("Mid-roll break at %.1fs of %.1fs", self.played, self.duration)
            self.show_mid_roll = True
            self.playing = False
            self._mid_roll_done = True
            self._deadlines[MID_ROLL] = self._clock() + MID_ROLL_SECONDS

    def on_ended(self) -> None:
        if select_ad(self.ads, POST_ROLL) is not None:
            self.show_post_roll = True
            self.playing = False
            self._deadlines[POST_ROLL] = self._clock() + POST_ROLL_SECONDS
            return
        self._finish()

    def on_error(self) -> bool:
        """Switch to the next link after a playback error, if there is one."""

        if self.current_index < len(self.links) - 1:
            self.current_index += 1
            return True
        return False

    def tick(self) -> None:
        now = self._clock()
        for overlay, deadline in list(self._deadlines.items()):
            if now < deadline:
                continue
            del self._deadlines[overlay]
            if overlay == PRE_ROLL:
                self.show_pre_roll = False
            elif overlay == MID_ROLL:
                self.show_mid_roll = False
                self.playing = True
            elif overlay == POST_ROLL:
                self.show_post_roll = False
                self._finish()

    def current_link(self) -> Optional[Any]:
        if not self.links:
            return None
        return self.links[self.current_index]

    def current_source(self) -> Optional[dict[str, str]]:
        link = self.current_link()
        if link is None:
            return None
        url = link.get("url") if isinstance(link, dict) else getattr(link, "url", None)
        if not url:
            return None
        return resolve_playback(url)

    def _finish(self) -> None:
        if self.finished:
            return
        self.finished = True
        self.playing = False
        if self.on_end is not None:
            self.on_end()


__all__ = [
    "AD_TYPES",
    "BANNER",
    "MID_ROLL",
    "MID_ROLL_SECONDS",
    "MID_ROLL_WINDOW_SECONDS",
    "POST_ROLL",
    "POST_ROLL_SECONDS",
    "PRE_ROLL",
    "PRE_ROLL_SECONDS",
    "PlaybackSession",
    "mid_roll_time",
    "normalize_ad_type",
    "plan_ad_breaks",
    "select_ad",
]
