from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Generic, TypeVar

from .errors import NotFoundError, PersistenceError, SealedDataError, StoreFullError
from .locking import RWLock
from .models import Event, utcnow
from .persistence import SnapshotFile, decode_store, encode_store
from .policies import MAX_ACTIVE_EVENTS, RETENTION
from .security import AssignmentSealer
from .tokens import new_token

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Committed(Generic[T]):
    """
    Result of a store write. persisted is False when the in-memory change
    was applied but the snapshot could not be written to disk.
    """
    value: T
    persisted: bool


class EventStore:
    """
    All events in memory behind one reader/writer lock.

    Writers hold the exclusive lock across the mutation and the snapshot
    write, so readers only ever see state that has been handed to disk.
    """
    def __init__(
        self,
        snapshot: SnapshotFile | None = None,
        sealer: AssignmentSealer | None = None,
        clock: Callable[[], datetime] = utcnow,
        max_events: int = MAX_ACTIVE_EVENTS,
    ):
        self._events: dict[str, Event] = {}
        self._lock = RWLock()
        self._snapshot = snapshot
        self._sealer = sealer
        self.clock = clock
        self.max_events = max_events
        # Expired events removed by the last load().
        self.swept_on_load = 0

    @classmethod
    def open(
        cls,
        path: str | os.PathLike,
        sealer: AssignmentSealer | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> "EventStore":
        store = cls(SnapshotFile(path), sealer=sealer, clock=clock)
        store.load()
        return store

    def load(self) -> None:
        """
        Replace memory with the data file, then drop expired events.

        A data file that exists but cannot be used is renamed aside before
        the store starts empty, so the next save does not destroy it.
        """
        with self._lock.write():
            events: dict[str, Event] = {}
            if self._snapshot is not None:
                try:
                    document = self._snapshot.read()
                    if document is None:
                        logger.info("Data file %s not found, starting empty.", self._snapshot.path)
                    else:
                        events = decode_store(document, self._sealer)
                except SealedDataError as e:
                    logger.critical(
                        "%s. SECRET_KEY or ASSIGNMENT_ENC_KEY differs from the one that wrote %s; "
                        "starting with an empty store.",
                        e, self._snapshot.path,
                    )
                    events = {}
                    self._keep_aside_locked()
                except PersistenceError as e:
                    logger.error("Error loading data file: %s; starting with an empty store.", e)
                    events = {}
                    self._keep_aside_locked()
            self._events = events
            logger.info("Loaded %d draws.", len(events))
            self.swept_on_load = self._sweep_locked(self.clock())

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._events)

    def create(self, event: Event) -> Committed[str]:
        with self._lock.write():
            if len(self._events) >= self.max_events:
                raise StoreFullError("Server is at capacity. Please try again later.")
            event_id = new_token()
            while event_id in self._events:
                event_id = new_token()
            self._events[event_id] = event
            return Committed(event_id, self._save_locked())

    def get(self, event_id: str) -> Event:
        """Detached copy of the event; changes to it are not stored."""
        with self._lock.read():
            return copy.deepcopy(self._require(event_id))

    def read(self, event_id: str, fn: Callable[[Event], T]) -> T:
        with self._lock.read():
            return fn(self._require(event_id))

    def mutate(self, event_id: str, fn: Callable[[Event], T]) -> Committed[T]:
        """
        Apply fn to the live event under the exclusive lock and persist.

        fn must raise before touching the event if it rejects the change; an
        exception propagates and nothing is written.
        """
        with self._lock.write():
            value = fn(self._require(event_id))
            return Committed(value, self._save_locked())

    def list(self) -> list[tuple[str, datetime]]:
        """(event id, created at) for every stored event."""
        with self._lock.read():
            return self._list_locked()

    def sweep_expired(self, now: datetime | None = None) -> int:
        with self._lock.write():
            return self._sweep_locked(now or self.clock())

    def _require(self, event_id: str) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise NotFoundError()
        return event

    def _list_locked(self) -> list[tuple[str, datetime]]:
        return [(event_id, e.created_at) for event_id, e in self._events.items()]

    def _sweep_locked(self, now: datetime) -> int:
        cutoff = now - RETENTION
        expired = [event_id for event_id, created_at in self._list_locked() if created_at < cutoff]
        for event_id in expired:
            del self._events[event_id]
            if self._sealer is not None:
                self._sealer.forget(event_id)
        if expired:
            logger.info("Cleaned up %d old draws (older than %d days).", len(expired), RETENTION.days)
            self._save_locked()
        return len(expired)

    def _keep_aside_locked(self) -> None:
        suffix = self.clock().strftime("%Y%m%dT%H%M%S")
        try:
            moved = self._snapshot.keep_aside(suffix)
        except PersistenceError as e:
            logger.error("%s; the next save will overwrite it.", e)
            return
        if moved is not None:
            logger.warning("Kept unreadable data file as %s.", moved)

    def _save_locked(self) -> bool:
        if self._snapshot is None:
            return True
        try:
            self._snapshot.write(encode_store(self._events, self._sealer))
        except PersistenceError as e:
            logger.error("Mutation kept in memory only: %s", e)
            return False
        return True
