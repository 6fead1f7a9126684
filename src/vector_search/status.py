"""Process-wide registry of collection initialization status.

Each collection name maps to one :class:`CollectionStatus`. Entries are created
lazily on first reference and are never removed. Updates to one name are
serialized by a per-name lock; different names never contend.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from vector_search.errors import InvalidStatusTransitionError


class InitializationState(str, Enum):
    """Lifecycle state of a collection rebuild."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class CollectionStatus(BaseModel):
    """Snapshot of one collection's initialization status.

    Attributes:
        name: Collection name
        state: Current lifecycle state
        error_message: Failure description, only present in FAILED
        started_at: When the latest rebuild attempt started (UTC)
        completed_at: When the latest rebuild attempt finished (UTC)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    state: InitializationState = InitializationState.NOT_STARTED
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_ready(self) -> bool:
        return self.state is InitializationState.COMPLETED


StatusObserver = Callable[[CollectionStatus], None]


class _Entry:
    """Mutable slot for one collection, guarded by its own lock."""

    __slots__ = ("lock", "status")

    def __init__(self, name: str) -> None:
        self.lock = threading.RLock()
        self.status = CollectionStatus(name=name)


class InitializationStatusTracker:
    """Thread-safe registry of per-collection lifecycle state."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._entries: dict[str, _Entry] = {}
        self._entries_lock = threading.Lock()
        self._observers: list[StatusObserver] = []
        self._observers_lock = threading.Lock()

    def get_status(self, name: str) -> CollectionStatus:
        """Return the status of ``name``, creating a NOT_STARTED entry if unknown."""
        entry = self._entry(name)
        with entry.lock:
            return entry.status

    def set_status(
        self,
        name: str,
        state: InitializationState,
        error_message: str | None = None,
    ) -> None:
        """Apply a transition and notify observers.

        Args:
            name: Collection name
            state: New state; NOT_STARTED is rejected
            error_message: Failure description, used only for FAILED

        Raises:
            InvalidStatusTransitionError: If ``state`` is NOT_STARTED
        """
        if state is InitializationState.NOT_STARTED:
            raise InvalidStatusTransitionError(
                f"Can not set the status of '{name}' to '{InitializationState.NOT_STARTED.value}'."
            )

        entry = self._entry(name)
        with entry.lock:
            now = self._clock()
            current = entry.status
            if state is InitializationState.IN_PROGRESS:
                updated = current.model_copy(
                    update={"state": state, "started_at": now, "error_message": None}
                )
            elif state is InitializationState.COMPLETED:
                updated = current.model_copy(
                    update={"state": state, "completed_at": now, "error_message": None}
                )
            elif state is InitializationState.FAILED:
                updated = current.model_copy(
                    update={"state": state, "completed_at": now, "error_message": error_message}
                )
            else:  # pragma: no cover - exhaustive over the enum
                raise ValueError(f"Unknown initialization state: {state!r}")

            entry.status = updated
            logger.debug(f"Collection '{name}' is now {state.value}")
            # Delivered under the per-name lock so observers see one name's
            # transitions in the order they were applied.
            self._notify(updated)

    def statuses(self) -> list[CollectionStatus]:
        """Return snapshots of every known collection, ordered by name."""
        with self._entries_lock:
            entries = list(self._entries.values())
        snapshots = []
        for entry in entries:
            with entry.lock:
                snapshots.append(entry.status)
        return sorted(snapshots, key=lambda s: s.name)

    def subscribe(self, observer: StatusObserver) -> Callable[[], None]:
        """Register ``observer`` for change notifications.

        Returns:
            A callable that removes the subscription
        """
        with self._observers_lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._observers_lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def _entry(self, name: str) -> _Entry:
        if not name or not name.strip():
            raise ValueError("Collection name must be a non-empty string")
        with self._entries_lock:
            entry = self._entries.get(name)
            if entry is None:
                entry = _Entry(name)
                self._entries[name] = entry
            return entry

    def _notify(self, status: CollectionStatus) -> None:
        with self._observers_lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(status)
            except Exception:
                logger.exception(f"Status observer {observer!r} failed for '{status.name}'")
