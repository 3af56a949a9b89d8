"""Per-dataset source status.

Every logical dataset (network + kind, optionally scoped to an address) has
one state in a keyed map. The presentation layer only reads this map; the
source gate is its only writer.

Each resolution pass takes a new generation number. Results carrying an
older generation are discarded instead of overwriting newer state.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from hexstats.services.data.records import Network


class DataSource(str, Enum):
    """Where a dataset's current data came from."""
    DATABASE = "database"
    REMOTE = "remote"
    TRANSITIONING = "transitioning"
    ERROR = "error"


class DatasetKind(str, Enum):
    OVERVIEW = "overview"
    GLOBAL_INFO = "global_info"
    STAKE_STARTS = "stake_starts"
    STAKE_ENDS = "stake_ends"
    STAKER_STARTS = "staker_starts"
    STAKER_ENDS = "staker_ends"


@dataclass(frozen=True)
class DatasetKey:
    """Identity of a logical dataset."""
    network: Network
    kind: DatasetKind
    scope: Optional[str] = None

    @property
    def name(self) -> str:
        base = f"{self.network.value}:{self.kind.value}"
        return f"{base}:{self.scope}" if self.scope else base


@dataclass
class DatasetState:
    """Source status of one dataset."""
    key: DatasetKey
    status: DataSource = DataSource.TRANSITIONING
    generation: int = 0
    last_error: Optional[str] = None
    last_updated: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None
    record_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset": self.key.name,
            "status": self.status.value,
            "last_error": self.last_error,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "last_attempt_at": self.last_attempt_at.isoformat() if self.last_attempt_at else None,
            "record_count": self.record_count,
        }


class DatasetStatusMap:
    """Keyed status map with generation tracking."""

    def __init__(self):
        self._states: Dict[DatasetKey, DatasetState] = {}

    def get(self, key: DatasetKey) -> DatasetState:
        state = self._states.get(key)
        if state is None:
            state = DatasetState(key=key)
            self._states[key] = state
        return state

    def begin(self, key: DatasetKey) -> int:
        """Start a resolution pass and return its generation.

        Datasets already served from a source keep their status while the
        pass runs; errored ones show as transitioning again.
        """
        state = self.get(key)
        state.generation += 1
        state.last_attempt_at = datetime.now(timezone.utc)
        if state.status is DataSource.ERROR:
            state.status = DataSource.TRANSITIONING
        return state.generation

    def is_current(self, key: DatasetKey, generation: int) -> bool:
        return self.get(key).generation == generation

    def mark_success(
        self,
        key: DatasetKey,
        generation: int,
        source: DataSource,
        record_count: int = 0,
    ) -> bool:
        """Record a successful load. False when the pass was superseded."""
        if not self.is_current(key, generation):
            return False
        state = self.get(key)
        state.status = source
        state.last_error = None
        state.last_updated = datetime.now(timezone.utc)
        state.record_count = record_count
        return True

    def mark_error(self, key: DatasetKey, generation: int, error: str) -> bool:
        """Record a failed load. False when the pass was superseded."""
        if not self.is_current(key, generation):
            return False
        state = self.get(key)
        state.status = DataSource.ERROR
        state.last_error = error
        return True

    def keys_with_status(self, status: DataSource) -> List[DatasetKey]:
        return [key for key, state in self._states.items() if state.status is status]

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Serializable view of every dataset state."""
        return {key.name: state.to_dict() for key, state in self._states.items()}

    def clear(self) -> None:
        self._states.clear()


_status_map: Optional[DatasetStatusMap] = None


def get_dataset_status_map() -> DatasetStatusMap:
    """Get or create the process-wide status map."""
    global _status_map
    if _status_map is None:
        _status_map = DatasetStatusMap()
    return _status_map
