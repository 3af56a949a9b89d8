"""Source gate: chooses the persistent store or the remote subgraphs per dataset.

Resolution order for one dataset:

1. When the store is reachable, query it first. A non-empty, structurally
   valid result is served with status ``database``.
2. Otherwise (store down, failing, or empty) query the remote service. A
   structurally valid result, even an empty one, is served with status
   ``remote``.
3. When both fail the status becomes ``error``, the last good result (if
   any) is served, and one retry is scheduled after
   ``source_retry_delay_seconds``. The retry asks the remote service first
   and never schedules another retry.

When an availability recheck finds the store reachable, every dataset served
from the remote service is reloaded from the store in the background and
promoted to ``database``. At most one promotion per dataset runs at a time.

Callers never see loader exceptions; failures are logged and reflected in
the dataset status.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Tuple

import structlog

from hexstats.services.data.availability import StoreAvailability
from hexstats.services.data.dataset_status import (
    DatasetKey,
    DatasetKind,
    DatasetStatusMap,
    DataSource,
)

logger = structlog.get_logger()

Loader = Callable[[DatasetKey], Awaitable[Any]]


def is_present(data: Any) -> bool:
    return data is not None


def is_empty(data: Any) -> bool:
    if data is None:
        return True
    try:
        return len(data) == 0
    except TypeError:
        return False


def record_count(data: Any) -> int:
    if data is None:
        return 0
    total = getattr(data, "total_active_stakes", None)
    if total is not None:
        return int(total)
    try:
        return len(data)
    except TypeError:
        return 1


@dataclass(frozen=True)
class DatasetLoader:
    """How to load one kind of dataset from each source."""
    store: Loader
    remote: Loader
    is_valid: Callable[[Any], bool] = is_present
    is_empty: Callable[[Any], bool] = is_empty


@dataclass
class _Outcome:
    data: Any = None
    source: Optional[DataSource] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.source is not None


class SourceGate:
    """Per-dataset source selection with fallback, retry and promotion."""

    def __init__(
        self,
        loaders: Mapping[DatasetKind, DatasetLoader],
        availability: StoreAvailability,
        status_map: DatasetStatusMap,
        retry_delay_seconds: float = 2.0,
    ):
        self._loaders = dict(loaders)
        self._availability = availability
        self._status = status_map
        self._retry_delay = retry_delay_seconds
        self._results: Dict[DatasetKey, Any] = {}
        self._retries: Dict[DatasetKey, asyncio.Task] = {}
        self._promotions: Dict[DatasetKey, asyncio.Task] = {}

    @property
    def status_map(self) -> DatasetStatusMap:
        return self._status

    def cached(self, key: DatasetKey) -> Any:
        """Last good result of a dataset, if any."""
        return self._results.get(key)

    def retry_pending(self, key: DatasetKey) -> bool:
        return key in self._retries

    def promotion_pending(self, key: DatasetKey) -> bool:
        return key in self._promotions

    async def resolve(self, key: DatasetKey) -> Tuple[Any, DataSource]:
        """Load a dataset from the best available source.

        Returns:
            (data, source). On ``DataSource.ERROR`` data is the last good
            result or None.
        """
        loader = self._loaders.get(key.kind)
        if loader is None:
            logger.error("No loader registered", dataset=key.name)
            return None, DataSource.ERROR

        generation = self._status.begin(key)
        store_first = await self._availability.check()
        order = (DataSource.DATABASE, DataSource.REMOTE) if store_first else (DataSource.REMOTE,)
        outcome = await self._attempt(key, loader, order)

        if outcome.ok:
            self._commit(key, generation, outcome)
            return outcome.data, outcome.source

        logger.error("All sources failed", dataset=key.name, error=outcome.error)
        self._status.mark_error(key, generation, outcome.error or "unknown error")
        self._schedule_retry(key)
        return self._results.get(key), DataSource.ERROR

    async def promote_remote_datasets(self) -> int:
        """Reload remote-served datasets from the store in the background.

        Returns:
            Number of promotions started by this call
        """
        started = 0
        for key in self._status.keys_with_status(DataSource.REMOTE):
            if key in self._promotions or key.kind not in self._loaders:
                continue
            self._promotions[key] = asyncio.create_task(self._promote(key))
            started += 1
        if started:
            logger.info("Promoting datasets to store", count=started)
        return started

    async def wait_for_background(self) -> None:
        """Wait for pending retries and promotions to finish."""
        tasks = list(self._retries.values()) + list(self._promotions.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel pending retries and promotions."""
        tasks = list(self._retries.values()) + list(self._promotions.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._retries.clear()
        self._promotions.clear()

    async def _load(self, key: DatasetKey, loader: DatasetLoader, source: DataSource) -> _Outcome:
        load = loader.store if source is DataSource.DATABASE else loader.remote
        try:
            data = await load(key)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                "Dataset load failed",
                dataset=key.name,
                source=source.value,
                error=str(e),
            )
            return _Outcome(error=f"{source.value}: {e}")

        if not loader.is_valid(data):
            return _Outcome(error=f"{source.value}: invalid result")
        if source is DataSource.DATABASE and loader.is_empty(data):
            logger.info("Store returned no data, falling back", dataset=key.name)
            return _Outcome(error=f"{source.value}: empty result")
        return _Outcome(data=data, source=source)

    async def _attempt(
        self,
        key: DatasetKey,
        loader: DatasetLoader,
        order: Sequence[DataSource],
    ) -> _Outcome:
        outcome = _Outcome(error="no source attempted")
        for source in order:
            outcome = await self._load(key, loader, source)
            if outcome.ok:
                return outcome
        return outcome

    def _commit(self, key: DatasetKey, generation: int, outcome: _Outcome) -> None:
        if not self._status.mark_success(key, generation, outcome.source, record_count(outcome.data)):
            logger.debug("Dropped superseded result", dataset=key.name, source=outcome.source.value)
            return
        self._results[key] = outcome.data
        logger.info(
            "Dataset resolved",
            dataset=key.name,
            source=outcome.source.value,
            records=record_count(outcome.data),
        )

    def _schedule_retry(self, key: DatasetKey) -> None:
        if key in self._retries:
            return
        self._retries[key] = asyncio.create_task(self._retry(key))

    async def _retry(self, key: DatasetKey) -> None:
        try:
            await asyncio.sleep(self._retry_delay)
            loader = self._loaders[key.kind]
            generation = self._status.begin(key)
            store_reachable = await self._availability.check()
            order = (DataSource.REMOTE, DataSource.DATABASE) if store_reachable else (DataSource.REMOTE,)
            outcome = await self._attempt(key, loader, order)
            if outcome.ok:
                self._commit(key, generation, outcome)
            else:
                logger.error("Retry failed", dataset=key.name, error=outcome.error)
                self._status.mark_error(key, generation, outcome.error or "unknown error")
        finally:
            self._retries.pop(key, None)

    async def _promote(self, key: DatasetKey) -> None:
        try:
            generation = self._status.begin(key)
            outcome = await self._load(key, self._loaders[key.kind], DataSource.DATABASE)
            if outcome.ok:
                self._commit(key, generation, outcome)
            else:
                logger.info("Promotion skipped, store not ready", dataset=key.name, error=outcome.error)
        finally:
            self._promotions.pop(key, None)
