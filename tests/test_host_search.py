from urllib.parse import quote

import pytest
import requests

from video_hosts import HostSearchManager, HostSearchResult
from video_hosts.providers import AshdiSearcher, TortugaSearcher
from video_hosts.providers import common


ASHDI_PAGE = """
<html>
  <body>
    <iframe src="https://ashdi.vip/vod/555"></iframe>
    <a href="/embed/555">Watch</a>
    <div data-link="https://ashdi.vip/vod/901"></div>
    <script>var player = {file: "/vod/777"};</script>
  </body>
</html>
"""


class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def captured_requests(monkeypatch):
    calls = []

    def install(text="", status_code=200, error=None):
        def fake_get(url, headers=None, timeout=None, allow_redirects=True):
            calls.append({"url": url, "headers": headers, "timeout": timeout})
            if error is not None:
                raise error
            return FakeResponse(text, status_code)

        monkeypatch.setattr(common.requests, "get", fake_get)
        return calls

    return install


def test_ashdi_search_extracts_unique_links(captured_requests):
    calls = captured_requests(ASHDI_PAGE)

    results = AshdiSearcher().search("Dune")

    assert [result.url for result in results] == [
        "https://ashdi.vip/vod/555",
        "https://ashdi.vip/vod/901",
        "https://ashdi.vip/vod/777",
    ]
    assert all(result.host == "ashdi.vip" for result in results)
    assert calls[0]["url"] == "https://ashdi.vip/search?q=Dune"
    assert calls[0]["headers"]["Referer"] == "https://ashdi.vip/"


def test_ashdi_search_finds_links_outside_known_attributes(captured_requests):
    captured_requests(
        """
        <div data-url="https://ashdi.vip/vod/111"></div>
        <p>Mirror: https://ashdi.vip/vod/222</p>
        <span data-iframe="//ashdi.vip/embed/333"></span>
        """
    )

    results = AshdiSearcher().search("Dune")

    assert [result.url for result in results] == [
        "https://ashdi.vip/vod/111",
        "https://ashdi.vip/vod/222",
        "https://ashdi.vip/vod/333",
    ]


def test_search_url_encodes_query():
    searcher = TortugaSearcher()

    assert searcher.search_url("Дюна 2021") == (
        "https://tortuga.wtf/search?q=" + quote("Дюна 2021", safe="")
    )
    assert searcher.search_url("  ") is None


def test_tortuga_builds_embed_links(captured_requests):
    captured_requests('<a href="https://tortuga.wtf/embed/aB12c">x</a>')

    results = TortugaSearcher().search("Dune")

    assert [result.url for result in results] == ["https://tortuga.wtf/embed/aB12c"]
    assert results[0].video_id == "aB12c"


def test_request_failure_returns_no_results(captured_requests):
    captured_requests(error=requests.ConnectionError("offline"))

    assert AshdiSearcher().search("Dune") == []


def test_http_error_returns_no_results(captured_requests):
    captured_requests("oops", status_code=503)

    assert TortugaSearcher().search("Dune") == []


class StubSearcher:
    def __init__(self, name, links):
        self.name = name
        self.label = name
        self.links = links
        self.queries = []

    def search_url(self, query):
        return None

    def search(self, query):
        self.queries.append(query)
        return [
            HostSearchResult(host=self.name, query=query, url=link, video_id=link[-1])
            for link in self.links
        ]


def test_manager_deduplicates_links_across_queries():
    manager = HostSearchManager()
    manager._searchers.clear()
    first = StubSearcher("one.example", ["https://one.example/embed/1"])
    second = StubSearcher(
        "two.example", ["https://two.example/embed/2", "https://one.example/embed/1"]
    )
    manager.register_searcher(first)
    manager.register_searcher(second)

    links = manager.search_video_links("Dune", 2021)

    assert links == ["https://one.example/embed/1", "https://two.example/embed/2"]
    assert first.queries == ["Dune", "Dune 2021", "dune"]


def test_manager_without_year_repeats_title_query():
    manager = HostSearchManager()
    manager._searchers.clear()
    stub = StubSearcher("one.example", [])
    manager.register_searcher(stub)

    assert manager.search_video_links("Dune") == []
    assert stub.queries == ["Dune", "Dune", "dune"]


def test_manager_rejects_empty_title_and_unknown_host():
    manager = HostSearchManager()

    assert manager.search_video_links("   ") == []
    with pytest.raises(ValueError):
        manager.search_host("missing.example", "Dune")


def test_manager_registers_default_hosts():
    names = [searcher.name for searcher in HostSearchManager().available_hosts()]

    assert names == ["ashdi.vip", "tortuga.wtf", "vidstreaming.io"]
