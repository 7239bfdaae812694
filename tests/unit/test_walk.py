"""Tests for stacgraph.walk breadth-first traversal."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from stacgraph.errors import (
    FetchFailedError,
    ParseFailedError,
    ResolveFailedError,
    TraversalError,
)
from stacgraph.fetch import DictFetcher
from stacgraph.models import Catalog, Collection, Item
from stacgraph.walk import NodeState, Walker, walk

ROOT = "https://example.com/catalog.json"


def _ids(results: list[tuple[str, Any]]) -> list[str]:
    return [outcome.id for _, outcome in results if not isinstance(outcome, TraversalError)]


class TestWalkOrder:
    """Tests for what is visited and in which order."""

    @pytest.mark.unit
    def test_breadth_first_in_link_order(self, sample_fetcher: DictFetcher) -> None:
        results = list(walk(ROOT, sample_fetcher))

        assert [location for location, _ in results] == [
            ROOT,
            "https://example.com/col/collection.json",
            "https://example.com/col/item-1/item-1.json",
            "https://example.com/col/item-2/item-2.json",
        ]
        assert isinstance(results[0][1], Catalog)
        assert isinstance(results[1][1], Collection)
        assert isinstance(results[2][1], Item)

    @pytest.mark.unit
    def test_items_are_leaves(self, sample_catalog: dict, link: Any) -> None:
        item_url = "https://example.com/col/item-1/item-1.json"
        sample_catalog[item_url]["links"].append(link("child", "./never.json"))
        fetcher = DictFetcher(sample_catalog)

        list(walk(ROOT, fetcher))

        assert "https://example.com/col/item-1/never.json" not in fetcher.requests

    @pytest.mark.unit
    def test_siblings_before_grandchildren(self, make_catalog: Any, link: Any) -> None:
        fetcher = DictFetcher(
            {
                ROOT: make_catalog(
                    "root", [link("child", "./a/catalog.json"), link("child", "./b.json")]
                ),
                "https://example.com/a/catalog.json": make_catalog(
                    "a", [link("child", "./deep.json")]
                ),
                "https://example.com/b.json": make_catalog("b"),
                "https://example.com/a/deep.json": make_catalog("deep"),
            }
        )

        assert _ids(list(walk(ROOT, fetcher))) == ["root", "a", "b", "deep"]

    @pytest.mark.unit
    def test_walk_from_item(self, make_item: Any) -> None:
        fetcher = DictFetcher({"/data/item.json": make_item("solo")})

        results = list(walk("/data/item.json", fetcher))

        assert _ids(results) == ["solo"]

    @pytest.mark.unit
    def test_absolute_self_href_is_the_base(self, make_catalog: Any, link: Any) -> None:
        fetcher = DictFetcher(
            {
                "https://mirror.example.org/catalog.json": make_catalog(
                    "root", [link("self", ROOT), link("child", "./sub.json")]
                ),
                "https://example.com/sub.json": make_catalog("sub"),
            }
        )

        results = list(walk("https://mirror.example.org/catalog.json", fetcher))

        assert [location for location, _ in results][1] == "https://example.com/sub.json"


class TestCycles:
    """Tests for the visited set."""

    @pytest.mark.unit
    def test_child_linking_back_to_root_is_visited_once(
        self, make_catalog: Any, link: Any
    ) -> None:
        fetcher = DictFetcher(
            {
                ROOT: make_catalog("root", [link("child", "./sub/catalog.json")]),
                "https://example.com/sub/catalog.json": make_catalog(
                    "sub", [link("child", "../catalog.json")]
                ),
            }
        )

        results = list(walk(ROOT, fetcher))

        assert _ids(results) == ["root", "sub"]
        assert len(fetcher.requests) == 2

    @pytest.mark.unit
    def test_diamond_is_visited_once(self, make_catalog: Any, link: Any) -> None:
        fetcher = DictFetcher(
            {
                ROOT: make_catalog("root", [link("child", "./a.json"), link("child", "./b.json")]),
                "https://example.com/a.json": make_catalog("a", [link("child", "./shared.json")]),
                "https://example.com/b.json": make_catalog(
                    "b", [link("child", "https://EXAMPLE.com/x/../shared.json")]
                ),
                "https://example.com/shared.json": make_catalog("shared"),
            }
        )

        assert _ids(list(walk(ROOT, fetcher))) == ["root", "a", "b", "shared"]


class TestFailures:
    """Tests for per-node failure isolation."""

    @pytest.mark.unit
    def test_one_unfetchable_child_of_three(self, make_catalog: Any, link: Any) -> None:
        fetcher = DictFetcher(
            {
                ROOT: make_catalog(
                    "root",
                    [
                        link("child", "./a.json"),
                        link("child", "./b.json"),
                        link("child", "./c.json"),
                    ],
                ),
                "https://example.com/a.json": make_catalog("a"),
                "https://example.com/b.json": ConnectionError("connection reset"),
                "https://example.com/c.json": make_catalog("c"),
            }
        )
        walker = Walker(fetcher)

        results = list(walker.walk(ROOT))

        children = results[1:]
        assert _ids(children) == ["a", "c"]
        failures = [outcome for _, outcome in children if isinstance(outcome, TraversalError)]
        assert len(failures) == 1
        assert isinstance(failures[0], FetchFailedError)
        assert failures[0].location == "https://example.com/b.json"
        assert walker.states["https://example.com/b.json"] is NodeState.FAILED
        assert walker.states["https://example.com/c.json"] is NodeState.VISITED

    @pytest.mark.unit
    def test_missing_document(self, make_catalog: Any, link: Any) -> None:
        fetcher = DictFetcher({ROOT: make_catalog("root", [link("child", "./gone.json")])})

        results = list(walk(ROOT, fetcher))

        assert isinstance(results[1][1], FetchFailedError)
        assert results[1][1].code == "STG-TRV001"

    @pytest.mark.unit
    def test_unparseable_child(self, make_catalog: Any, link: Any) -> None:
        fetcher = DictFetcher(
            {
                ROOT: make_catalog(
                    "root", [link("child", "./bad.json"), link("child", "./ok.json")]
                ),
                "https://example.com/bad.json": "<html>not found</html>",
                "https://example.com/ok.json": make_catalog("ok"),
            }
        )

        results = list(walk(ROOT, fetcher))

        assert isinstance(results[1][1], ParseFailedError)
        assert _ids(results) == ["root", "ok"]

    @pytest.mark.unit
    def test_unresolvable_child_href(self, make_catalog: Any, link: Any) -> None:
        fetcher = DictFetcher(
            {
                "/data/catalog.json": make_catalog(
                    "root", [link("child", "//host/x.json"), link("child", "./ok.json")]
                ),
                "/data/ok.json": make_catalog("ok"),
            }
        )

        results = list(walk("/data/catalog.json", fetcher))

        assert results[0][0] == "/data/catalog.json"
        assert results[1][0] == "/data/catalog.json#/links/0"
        assert isinstance(results[1][1], ResolveFailedError)
        assert results[1][1].href == "//host/x.json"
        assert results[1][1].code == "STG-TRV003"
        assert _ids(results) == ["root", "ok"]

    @pytest.mark.unit
    def test_same_unresolvable_href_in_two_documents(self, make_catalog: Any, link: Any) -> None:
        broken = link("child", "//host/x.json")
        fetcher = DictFetcher(
            {
                "/data/catalog.json": make_catalog(
                    "root", [link("child", "./a.json"), link("child", "./b.json")]
                ),
                "/data/a.json": make_catalog("a", [link("license", "./LICENSE"), broken]),
                "/data/b.json": make_catalog("b", [broken]),
            }
        )

        failures = [
            location
            for location, outcome in walk("/data/catalog.json", fetcher)
            if isinstance(outcome, ResolveFailedError)
        ]

        assert failures == ["/data/a.json#/links/1", "/data/b.json#/links/0"]

    @pytest.mark.unit
    def test_root_failure_ends_walk(self) -> None:
        results = list(walk(ROOT, DictFetcher({})))

        assert len(results) == 1
        assert isinstance(results[0][1], FetchFailedError)


class TestLaziness:
    """Tests for the generator contract."""

    @pytest.mark.unit
    def test_nothing_fetched_before_iteration(self, sample_fetcher: DictFetcher) -> None:
        walk(ROOT, sample_fetcher)

        assert sample_fetcher.requests == []

    @pytest.mark.unit
    def test_fetches_only_what_is_consumed(self, sample_fetcher: DictFetcher) -> None:
        results = walk(ROOT, sample_fetcher)

        next(results)
        results.close()

        assert sample_fetcher.requests == [ROOT]

    @pytest.mark.unit
    def test_break_stops_fetching(self, sample_fetcher: DictFetcher) -> None:
        for location, _ in walk(ROOT, sample_fetcher):
            if location.endswith("collection.json"):
                break

        assert len(sample_fetcher.requests) == 2


class TestConcurrency:
    """Tests for bounded parallel prefetching."""

    @pytest.mark.unit
    @pytest.mark.parametrize("max_workers", [2, 4, 8])
    def test_order_matches_sequential(self, sample_catalog: dict, max_workers: int) -> None:
        sequential = [loc for loc, _ in walk(ROOT, DictFetcher(sample_catalog))]

        parallel = [
            loc for loc, _ in walk(ROOT, DictFetcher(sample_catalog), max_workers=max_workers)
        ]

        assert parallel == sequential

    @pytest.mark.unit
    def test_fetches_run_in_worker_threads(self, sample_catalog: dict) -> None:
        inner = DictFetcher(sample_catalog)
        threads: set[str] = set()

        def fetch(location: str) -> bytes:
            threads.add(threading.current_thread().name)
            return inner(location)

        list(walk(ROOT, fetch, max_workers=2))

        assert threading.current_thread().name not in threads

    @pytest.mark.unit
    def test_each_location_fetched_once(self, sample_fetcher: DictFetcher) -> None:
        list(walk(ROOT, sample_fetcher, max_workers=4))

        assert sorted(sample_fetcher.requests) == sorted(set(sample_fetcher.requests))
        assert len(sample_fetcher.requests) == 4

    @pytest.mark.unit
    def test_rejects_zero_workers(self, sample_fetcher: DictFetcher) -> None:
        with pytest.raises(ValueError, match="max_workers"):
            Walker(sample_fetcher, max_workers=0)
