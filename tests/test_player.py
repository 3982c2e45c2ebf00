import pytest

from player import (
    MID_ROLL,
    POST_ROLL,
    PRE_ROLL,
    PlaybackSession,
    normalize_ad_type,
    plan_ad_breaks,
    select_ad,
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def _ad(ad_type, **fields):
    return {"id": fields.pop("id", 1), "type": ad_type, "is_active": True, **fields}


@pytest.mark.parametrize(
    "value,expected",
    [
        ("pre-roll", PRE_ROLL),
        ("Mid_Roll", MID_ROLL),
        ("post-roll", POST_ROLL),
        ("banner", "BANNER"),
        ("popup", None),
        (None, None),
    ],
)
def test_normalize_ad_type(value, expected):
    assert normalize_ad_type(value) == expected


def test_select_ad_skips_inactive_entries():
    ads = [
        _ad(PRE_ROLL, id=1, is_active=False),
        _ad(PRE_ROLL, id=2),
    ]

    assert select_ad(ads, PRE_ROLL)["id"] == 2
    assert select_ad(ads, POST_ROLL) is None


def test_select_ad_prefers_highest_priority():
    ads = [
        _ad(MID_ROLL, id=1, priority=1),
        _ad(MID_ROLL, id=2, priority=5),
        _ad(MID_ROLL, id=3, priority=5),
        _ad(MID_ROLL, id=4),
    ]

    assert select_ad(ads, MID_ROLL)["id"] == 2
    assert select_ad(reversed(ads), MID_ROLL)["id"] == 3


def test_plan_ad_breaks():
    ads = [
        _ad(PRE_ROLL, id=1),
        _ad(MID_ROLL, id=2, position=50),
        _ad(POST_ROLL, id=3),
    ]

    breaks = plan_ad_breaks(ads, 7200)

    assert breaks == [
        {"type": PRE_ROLL, "start": 0.0, "length": 5, "ad_id": 1},
        {"type": MID_ROLL, "start": 3600.0, "length": 15, "ad_id": 2},
        {"type": POST_ROLL, "start": 7200.0, "length": 10, "ad_id": 3},
    ]


def test_plan_without_duration_skips_mid_roll():
    ads = [_ad(MID_ROLL, position=50), _ad(POST_ROLL, id=3)]

    breaks = plan_ad_breaks(ads)

    assert [item["type"] for item in breaks] == [POST_ROLL]
    assert breaks[0]["start"] is None


def test_pre_roll_is_hidden_without_ads(clock):
    session = PlaybackSession(["https://cdn.example.com/a.mp4"], clock=clock)
    assert session.overlay == PRE_ROLL

    session.load_ads([])

    assert session.overlay is None


def test_pre_roll_closes_after_five_seconds(clock):
    session = PlaybackSession(ads=[_ad(PRE_ROLL)], clock=clock)
    session.play()
    assert session.overlay == PRE_ROLL
    assert not session.is_playing

    clock.advance(4.9)
    session.tick()
    assert session.overlay == PRE_ROLL

    clock.advance(0.2)
    session.tick()
    assert session.overlay is None
    assert session.is_playing


def test_mid_roll_pauses_once_and_resumes(clock):
    session = PlaybackSession(ads=[_ad(MID_ROLL, position=50)], clock=clock)
    session.on_duration(100)
    session.play()

    session.on_progress(48)
    assert session.overlay == MID_ROLL
    assert session.playing is False

    clock.advance(15)
    session.tick()
    assert session.overlay is None
    assert session.playing is True

    session.on_progress(50)
    assert session.overlay is None


def test_mid_roll_ignores_progress_outside_window(clock):
    session = PlaybackSession(ads=[_ad(MID_ROLL, position=50)], clock=clock)
    session.on_duration(100)
    session.play()

    session.on_progress(30)
    session.on_progress(56)

    assert session.overlay is None
    assert session.playing is True


def test_post_roll_delays_end_callback(clock):
    ended = []
    session = PlaybackSession(
        ads=[_ad(POST_ROLL)], on_end=lambda: ended.append(True), clock=clock
    )

    session.on_ended()
    assert session.overlay == POST_ROLL
    assert ended == []

    clock.advance(10)
    session.tick()
    session.tick()

    assert session.overlay is None
    assert session.finished
    assert ended == [True]


def test_end_without_post_roll_finishes_immediately(clock):
    ended = []
    session = PlaybackSession(ads=[], on_end=lambda: ended.append(True), clock=clock)

    session.on_ended()
    session.on_ended()

    assert ended == [True]


def test_on_error_moves_to_next_link(clock):
    links = [
        {"url": "https://ashdi.vip/vod/1"},
        {"url": "https://cdn.example.com/movie.mp4"},
    ]
    session = PlaybackSession(links, ads=[], clock=clock)
    assert session.current_source() == {"mode": "iframe", "src": "https://ashdi.vip/embed/1"}

    assert session.on_error() is True
    assert session.current_source() == {
        "mode": "player",
        "src": "https://cdn.example.com/movie.mp4",
    }
    assert session.on_error() is False
    assert session.current_index == 1


def test_session_without_links_has_no_source(clock):
    session = PlaybackSession(clock=clock)

    assert session.current_link() is None
    assert session.current_source() is None
