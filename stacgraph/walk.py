"""Breadth-first traversal of a STAC catalog graph.

Starting from a root location, the walker fetches each document, parses it,
and follows the `child` and `item` links of Catalogs and Collections. Items
are leaves: their assets are not traversed.

Guarantees:
- Breadth-first, in link order; the output order does not depend on how
  many fetches run concurrently.
- Every location (after normalization) is fetched and yielded at most once,
  so cycles such as a child linking back to the root terminate.
- A node that cannot be fetched or parsed is yielded as a TraversalError
  and the walk continues with its siblings. A link whose href cannot be
  resolved is yielded as ResolveFailedError under a JSON Pointer to the link
  in its document ("<document>#/links/<n>").
- The walk is a lazy generator. Nothing beyond the prefetch window is fetched
  until the consumer asks for the next result; stopping early (break, close())
  cancels pending prefetches.

Usage:
    from stacgraph.fetch import ObstoreFetcher
    from stacgraph.walk import walk

    for location, outcome in walk("https://example.com/catalog.json", ObstoreFetcher()):
        if isinstance(outcome, TraversalError):
            print(f"{location}: {outcome.message}")
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from itertools import islice
from types import TracebackType

from stacgraph.constants import DEFAULT_MAX_WORKERS, TRAVERSAL_RELS
from stacgraph.document import parse
from stacgraph.errors import (
    FetchFailedError,
    ParseError,
    ParseFailedError,
    ResolveError,
    ResolveFailedError,
    TraversalError,
)
from stacgraph.fetch import FetchFn
from stacgraph.href import document_base, normalize, resolve
from stacgraph.models import Catalog, Collection, Document

logger = logging.getLogger(__name__)

WalkResult = tuple[str, Document | TraversalError]


class NodeState(Enum):
    """Lifecycle of a location reached by the walker.

    PENDING: Queued in the frontier.
    VISITING: Being fetched and parsed.
    VISITED: Parsed into a document (terminal).
    FAILED: Fetch, parse or resolution failed (terminal).
    """

    PENDING = "pending"
    VISITING = "visiting"
    VISITED = "visited"
    FAILED = "failed"


class _Prefetcher:
    """Fetch upcoming frontier entries ahead of time, hand results back in order.

    With max_workers == 1 every fetch happens inline, when asked for.
    """

    def __init__(self, fetch: FetchFn, max_workers: int) -> None:
        self._fetch = fetch
        self._window = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers) if max_workers > 1 else None
        self._pending: dict[str, Future[bytes]] = {}

    def __enter__(self) -> _Prefetcher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def get(self, location: str, upcoming: Iterable[str]) -> bytes:
        """Return the payload for ``location``, scheduling the next ``upcoming`` ones."""
        if self._executor is None:
            return self._fetch(location)

        future = self._pending.pop(location, None)
        if future is None:
            future = self._executor.submit(self._fetch, location)
        for next_location in islice(upcoming, self._window - 1):
            if next_location not in self._pending:
                self._pending[next_location] = self._executor.submit(self._fetch, next_location)
        return future.result()


class Walker:
    """Breadth-first walker over the link graph.

    Args:
        fetch: Fetch capability used for every document.
        max_workers: Number of concurrent fetches (1 = sequential).

    Attributes:
        states: Location -> NodeState for every location reached by the
            current (or last) walk.
    """

    def __init__(self, fetch: FetchFn, *, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._fetch = fetch
        self.max_workers = max_workers
        self.states: dict[str, NodeState] = {}

    def walk(self, root: str) -> Iterator[WalkResult]:
        """Yield ``(location, Document | TraversalError)`` for every reachable node."""
        root = normalize(root)
        self.states = {root: NodeState.PENDING}
        frontier: deque[str] = deque([root])

        with _Prefetcher(self._fetch, self.max_workers) as prefetcher:
            while frontier:
                location = frontier.popleft()
                self.states[location] = NodeState.VISITING
                logger.debug("Visiting %s", location)

                try:
                    payload = prefetcher.get(location, frontier)
                except Exception as err:
                    logger.warning("Failed to fetch %s: %s", location, err)
                    self.states[location] = NodeState.FAILED
                    yield location, FetchFailedError(location, err)
                    continue

                try:
                    doc = parse(payload)
                except ParseError as err:
                    logger.warning("Failed to parse %s: %s", location, err)
                    self.states[location] = NodeState.FAILED
                    yield location, ParseFailedError(location, err)
                    continue

                self.states[location] = NodeState.VISITED
                failures = self._enqueue_children(doc, location, frontier)
                yield location, doc

                for pointer, href, err in failures:
                    yield pointer, ResolveFailedError(pointer, href, err)

    def _enqueue_children(
        self, doc: Document, location: str, frontier: deque[str]
    ) -> list[tuple[str, str, ResolveError]]:
        """Queue unseen child/item links of a Catalog or Collection, in link order.

        Returns:
            (pointer to the link, href, error) for each href that did not resolve.
        """
        failures: list[tuple[str, str, ResolveError]] = []
        if not isinstance(doc, (Catalog, Collection)):
            return failures

        base = document_base(doc, location)
        for index, link in enumerate(doc.links):
            if link.rel not in TRAVERSAL_RELS:
                continue
            try:
                child = normalize(resolve(base, link.href))
            except ResolveError as err:
                logger.warning("Cannot resolve %s against %s: %s", link.href, base, err)
                failures.append((f"{location}#/links/{index}", link.href, err))
                continue

            if child in self.states:
                continue
            self.states[child] = NodeState.PENDING
            frontier.append(child)
        return failures


def walk(
    root: str,
    fetch: FetchFn,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Iterator[WalkResult]:
    """Walk the catalog graph rooted at ``root``.

    Args:
        root: Location of the root Catalog, Collection or Item.
        fetch: Fetch capability, ``fetch(location) -> bytes``.
        max_workers: Number of concurrent fetches (1 = sequential).

    Returns:
        Lazy iterator of ``(location, Document | TraversalError)`` pairs in
        breadth-first order. Each call starts a fresh walk.
    """
    return Walker(fetch, max_workers=max_workers).walk(root)
