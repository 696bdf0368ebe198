from typing import Hashable, List, Optional
from parapix.domain.models import EditorSnapshot
from parapix.kernel.system.config import APP_CONFIG
from parapix.kernel.system.logging import get_logger
from parapix.kernel.system.scheduling import Scheduler

logger = get_logger(__name__)


class HistoryManager:
    """
    Bounded undo/redo log of editor snapshots.

    Slider scrubbing goes through ``commit_debounced``: each request cancels
    the previous one and the snapshot is pushed only once the quiet period
    elapses. Discrete actions use ``commit_immediate``, which also discards
    any debounced commit still waiting.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        capacity: Optional[int] = None,
        debounce_s: Optional[float] = None,
    ) -> None:
        self.scheduler = scheduler
        self.capacity = max(1, capacity if capacity is not None else APP_CONFIG.history_capacity)
        self.debounce_s = debounce_s if debounce_s is not None else APP_CONFIG.history_debounce_s
        self._entries: List[EditorSnapshot] = []
        self._cursor = -1
        self._pending_token: Optional[Hashable] = None
        self._pending_snapshot: Optional[EditorSnapshot] = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def has_pending(self) -> bool:
        return self._pending_token is not None

    @property
    def current(self) -> Optional[EditorSnapshot]:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def clear(self) -> None:
        self._cancel_pending()
        self._entries = []
        self._cursor = -1
        logger.info("History cleared")

    def commit_debounced(self, snapshot: EditorSnapshot) -> None:
        """
        Schedules a push after the quiet period. A later request replaces
        this one.
        """
        self._cancel_pending()
        self._pending_snapshot = snapshot
        self._pending_token = self.scheduler.schedule_after(
            self.debounce_s, lambda: self._fire_pending(snapshot)
        )

    def commit_immediate(self, snapshot: EditorSnapshot) -> None:
        self._cancel_pending()
        self._push(snapshot)

    def flush(self) -> bool:
        """
        Pushes a waiting debounced snapshot right away. Returns True if one
        was waiting.
        """
        snapshot = self._pending_snapshot
        if snapshot is None:
            return False
        self._cancel_pending()
        self._push(snapshot)
        return True

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def undo(self) -> Optional[EditorSnapshot]:
        self.flush()
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> Optional[EditorSnapshot]:
        self.flush()
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def _fire_pending(self, snapshot: EditorSnapshot) -> None:
        # A callback that lost a race with cancel must not push a newer request
        if self._pending_snapshot is not snapshot:
            return
        self._pending_token = None
        self._pending_snapshot = None
        self._push(snapshot)

    def _cancel_pending(self) -> None:
        if self._pending_token is not None:
            self.scheduler.cancel(self._pending_token)
        self._pending_token = None
        self._pending_snapshot = None

    def _push(self, snapshot: EditorSnapshot) -> None:
        del self._entries[self._cursor + 1 :]
        self._entries.append(snapshot)
        if len(self._entries) > self.capacity:
            self._entries.pop(0)
        else:
            self._cursor += 1
        logger.debug(f"History push: {len(self._entries)} entries, cursor {self._cursor}")
