"""Learner progress: display name, session history, SRS table and unlocked achievements."""

import logging
from datetime import datetime
from typing import Callable

from .achievements import evaluate
from .config import HISTORY_LIMIT
from .interfaces import (
    Storage, SLOT_DISPLAY_NAME, SLOT_HISTORY, SLOT_SRS, SLOT_ACHIEVEMENTS
)
from .models import SessionResult
from .srs import SRSScheduler
from .utils import utc_now

logger = logging.getLogger(__name__)


class LearnerProgress:
    """Loads every slot once and writes each one back whole after it changes.

    Storage failures are logged and swallowed: the in-memory state stays
    authoritative for the life of the process.
    """

    def __init__(self, storage: Storage, clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.clock = clock
        self.display_name = self._load_display_name()
        self.history = self._load_history()
        self.srs = SRSScheduler(self._load_srs_table(), on_change=self._on_srs_change, clock=clock)
        self.unlocked = self._load_unlocked()
        self._recent_unlocks = []

    def _load(self, slot: str):
        try:
            return self.storage.load(slot)
        except Exception as e:
            logger.warning(f"Could not load {slot}, starting empty: {e}")
            return None

    def _save(self, slot: str, value) -> bool:
        try:
            self.storage.save(slot, value)
            return True
        except Exception as e:
            logger.error(f"Failed to persist {slot}: {e}")
            return False

    def _load_display_name(self) -> str:
        name = self._load(SLOT_DISPLAY_NAME)
        return name if isinstance(name, str) else ''

    def _load_history(self) -> list[SessionResult]:
        data = self._load(SLOT_HISTORY)
        if not isinstance(data, list):
            return []
        history = []
        for entry in data[:HISTORY_LIMIT]:
            try:
                history.append(SessionResult.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed history entry: {e}")
        return history

    def _load_srs_table(self) -> dict:
        data = self._load(SLOT_SRS)
        if not isinstance(data, dict):
            return {}
        return SRSScheduler.table_from_dict(data)

    def _load_unlocked(self) -> set[str]:
        data = self._load(SLOT_ACHIEVEMENTS)
        if not isinstance(data, list):
            return set()
        return {a for a in data if isinstance(a, str)}

    def set_display_name(self, name: str) -> None:
        self.display_name = name.strip()
        self._save(SLOT_DISPLAY_NAME, self.display_name)

    def record_result(self, result: SessionResult) -> list[str]:
        """Prepend a finished session to history, keeping the newest HISTORY_LIMIT."""
        self.history.insert(0, result)
        del self.history[HISTORY_LIMIT:]
        self._save(SLOT_HISTORY, [r.to_dict() for r in self.history])
        logger.info(f"Session recorded: {result.category} score={result.score} accuracy={result.accuracy}%")
        return self.evaluate_achievements()

    def _on_srs_change(self, table: dict) -> None:
        self._save(SLOT_SRS, self.srs.to_dict())
        self.evaluate_achievements()

    def evaluate_achievements(self) -> list[str]:
        newly_unlocked = evaluate(self.unlocked, self.history, self.srs.table)
        if newly_unlocked:
            self._save(SLOT_ACHIEVEMENTS, sorted(self.unlocked))
            self._recent_unlocks.extend(newly_unlocked)
        return newly_unlocked

    @property
    def recent_unlocks(self) -> list[str]:
        return list(self._recent_unlocks)

    def pop_recent_unlocks(self) -> list[str]:
        """Achievements unlocked since the last call, for one-time notification."""
        unlocks, self._recent_unlocks = self._recent_unlocks, []
        return unlocks

    def due_items(self, now: datetime = None):
        return self.srs.due_items(now)
