"""
Runtime - Serialised, all-or-nothing execution of vault operations.

Every public operation runs inside ``Runtime.transaction()``:

1. Acquire the runtime lock (one operation at a time, re-entrant for
   nested collaborator calls such as a registry invoking a receive callback)
2. Read the clock once; ``runtime.now`` is fixed for the whole operation
3. Snapshot every registered participant
4. Run the operation
5. On any exception: restore every snapshot, drop buffered events, re-raise
6. On success: publish buffered events to the log and to subscribers

Invariants:
- No partial effects of a failed operation are ever observable
- Events are published only for committed operations, in emission order
- Time is never cached across operations
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from typing import Any, Deque, Iterator, List, Optional, Protocol, Sequence, Tuple

from .hooks import VaultEvent, VaultHooks

logger = logging.getLogger(__name__)

# 2024-01-01T00:00:00Z; default start for manual clocks
REFERENCE_TIMESTAMP = 1_704_067_200

# Committed events kept on the runtime; subscribers see every event
DEFAULT_EVENT_HISTORY = 1024


# =============================================================================
# Clocks
# =============================================================================

class Clock(Protocol):
    def now(self) -> int:
        """Current time in whole seconds."""
        ...


class SystemClock:
    """Wall-clock seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to, and only forward."""

    def __init__(self, start: int = REFERENCE_TIMESTAMP) -> None:
        if start < 0:
            raise ValueError("start must be non-negative")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(f"clock cannot move backwards: {timestamp} < {self._now}")
        self._now = timestamp
        return self._now


# =============================================================================
# Participants
# =============================================================================

class Stateful(Protocol):
    """State that the runtime can snapshot and roll back."""

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


def deep_snapshot(state: Any) -> Any:
    """Independent copy of a participant's state."""
    return copy.deepcopy(state)


# =============================================================================
# Runtime
# =============================================================================

class Runtime:
    """Execution environment shared by the vault and its collaborators."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        hooks: Optional[Sequence[VaultHooks]] = None,
        event_history: int = DEFAULT_EVENT_HISTORY,
    ) -> None:
        if event_history < 0:
            raise ValueError("event_history must be non-negative")
        self.clock: Clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._participants: List[Stateful] = []
        self._hooks: List[VaultHooks] = list(hooks or ())
        self._depth = 0
        self._now: Optional[int] = None
        self._pending: List[VaultEvent] = []
        self.events: Deque[VaultEvent] = deque(maxlen=event_history)

    def register(self, participant: Stateful) -> Stateful:
        with self._lock:
            if self._depth:
                raise RuntimeError("cannot register participants inside a transaction")
            self._participants.append(participant)
        return participant

    def subscribe(self, hooks: VaultHooks) -> None:
        with self._lock:
            self._hooks.append(hooks)

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @property
    def now(self) -> int:
        """Operation time inside a transaction or view, else a fresh reading."""
        if self._now is not None:
            return self._now
        return self.clock.now()

    @contextmanager
    def transaction(self, label: str = "operation") -> Iterator[int]:
        """Run a state-changing operation atomically. Yields the operation time."""
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self._now  # type: ignore[misc]
                finally:
                    self._depth -= 1
                return

            now = self.clock.now()
            snapshots: List[Tuple[Stateful, Any]] = [
                (participant, participant.snapshot()) for participant in self._participants
            ]
            self._now = now
            self._depth = 1
            self._pending = []
            try:
                yield now
            except BaseException as exc:
                for participant, snap in snapshots:
                    participant.restore(snap)
                self._pending = []
                logger.debug(
                    f"{label} rolled back: {type(exc).__name__}: {exc}",
                    extra={"context": {"operation": label, "at": now}},
                )
                raise
            finally:
                self._depth = 0
                self._now = None

            committed = self._pending
            self._pending = []
            self.events.extend(committed)
            self._publish(committed)

    @contextmanager
    def view(self) -> Iterator[int]:
        """Read-only access under the lock with a single clock reading."""
        with self._lock:
            if self._depth or self._now is not None:
                yield self._now  # type: ignore[misc]
                return
            self._now = self.clock.now()
            try:
                yield self._now
            finally:
                self._now = None

    def emit(self, event: VaultEvent) -> None:
        if not self._depth:
            raise RuntimeError("events can only be emitted inside a transaction")
        self._pending.append(event)

    def _publish(self, events: List[VaultEvent]) -> None:
        for event in events:
            for hooks in self._hooks:
                try:
                    hooks.on_event(event)
                except Exception as e:
                    logger.warning(f"Hook exception (ignored): {type(e).__name__}: {e}")
