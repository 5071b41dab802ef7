"""Feed screen state and load orchestration."""

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace

from .logging_config import create_execution_logger
from .models import FeedItem
from .premium import PremiumEnricher
from .rss import FeedFetcher, FetchError


@dataclass(frozen=True)
class FeedState:
    """Snapshot of the feed screen.

    ``generation`` identifies the load that produced the snapshot. Results
    from any other load are ignored by the transitions below.
    """

    items: tuple[FeedItem, ...] = ()
    loading: bool = False
    refreshing: bool = False
    fetch_failed: bool = False
    generation: int = 0


def start_fetch(state: FeedState, generation: int, refreshing: bool = False) -> FeedState:
    """Begin a load tagged with a newer generation."""
    if generation <= state.generation:
        return state
    return replace(
        state,
        loading=not refreshing,
        refreshing=refreshing,
        fetch_failed=False,
        generation=generation,
    )


def fetch_succeeded(
    state: FeedState, generation: int, items: Iterable[FeedItem]
) -> FeedState:
    """Replace the items with a finished fetch."""
    if generation != state.generation:
        return state
    return replace(
        state, items=tuple(items), loading=False, refreshing=False, fetch_failed=False
    )


def fetch_failed(state: FeedState, generation: int) -> FeedState:
    """Record a failed load. The previous items stay on screen."""
    if generation != state.generation:
        return state
    return replace(state, loading=False, refreshing=False, fetch_failed=True)


def enrichment_applied(
    state: FeedState, generation: int, restricted_links: Iterable[str]
) -> FeedState:
    """Flag the items whose link was found behind the paywall."""
    if generation != state.generation:
        return state
    links = set(restricted_links)
    if not links:
        return state
    items = tuple(
        replace(item, is_restricted=True) if item.link in links else item
        for item in state.items
    )
    return replace(state, items=items)


class FeedController:
    """Runs the fetch-then-enrich flow and publishes FeedState snapshots.

    The fetch runs in the caller's thread. The premium enrichment is handed
    to an executor and is not waited for; its result is applied only if no
    newer load has started in the meantime.
    """

    def __init__(
        self,
        fetcher: FeedFetcher,
        enricher: PremiumEnricher,
        executor: ThreadPoolExecutor | None = None,
        execution_id: str | None = None,
    ):
        self.fetcher = fetcher
        self.enricher = enricher
        self.logger = create_execution_logger("feed_controller", execution_id)
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="premium-enricher"
        )
        self._lock = threading.RLock()
        self._state = FeedState()
        self._generation = 0
        self._listeners: list[Callable[[FeedState], None]] = []
        self._pending: Future | None = None

    @property
    def state(self) -> FeedState:
        with self._lock:
            return self._state

    def subscribe(self, callback: Callable[[FeedState], None]) -> None:
        """Register a callback invoked with every new snapshot."""
        with self._lock:
            self._listeners.append(callback)

    def load(
        self, path: str | None = None, sub_path: str | None = None, refreshing: bool = False
    ) -> FeedState:
        """Fetch a feed and schedule its premium enrichment.

        Args:
            path: Feed path relative to the host, None for the latest news
            sub_path: Section path of the index page used for enrichment
            refreshing: True for a pull-to-refresh, which keeps rows visible

        Returns:
            The snapshot published once the fetch settled
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._transition(start_fetch, generation, refreshing)

        try:
            items_by_link = self.fetcher.fetch_items_by_link(path)
        except FetchError as e:
            self.logger.error(f"Feed load failed: {e}", generation=generation)
            return self._transition(fetch_failed, generation)

        state = self._transition(fetch_succeeded, generation, items_by_link.values())
        self.logger.info(
            "Feed load succeeded", generation=generation, items_count=len(state.items)
        )

        with self._lock:
            self._pending = self._executor.submit(
                self._enrich, generation, items_by_link, sub_path
            )
        return state

    def refresh(self, path: str | None = None, sub_path: str | None = None) -> FeedState:
        """Reload while keeping the current rows on screen."""
        return self.load(path, sub_path, refreshing=True)

    def wait_for_enrichment(self, timeout: float | None = None) -> FeedState:
        """Block until the latest scheduled enrichment pass has finished."""
        with self._lock:
            pending = self._pending
        if pending is not None:
            wait([pending], timeout=timeout)
        return self.state

    def close(self, wait: bool = True) -> None:
        """Stop the enrichment executor.

        With ``wait=False`` queued passes are cancelled and a running one is
        left to finish in the background; its result still goes through the
        generation check.
        """
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def _enrich(
        self, generation: int, items_by_link: dict[str, FeedItem], sub_path: str | None
    ) -> FeedState:
        # Work on copies so published snapshots are never mutated in place
        working = {link: replace(item) for link, item in items_by_link.items()}
        flagged = self.enricher.enrich(working, sub_path)

        state = self._transition(enrichment_applied, generation, flagged)
        if state.generation != generation:
            self.logger.info(
                "Discarded stale premium enrichment",
                generation=generation,
                current_generation=state.generation,
            )
        return state

    def _transition(self, action: Callable[..., FeedState], *args) -> FeedState:
        with self._lock:
            previous = self._state
            self._state = action(previous, *args)
            if self._state is not previous:
                for listener in list(self._listeners):
                    listener(self._state)
            return self._state
