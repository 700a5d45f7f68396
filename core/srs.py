"""Spaced repetition scheduler."""

import logging
from datetime import datetime
from typing import Callable

from .config import MAX_SRS_LEVEL, SRS_INTERVALS, INCORRECT_REVIEW_DELAY
from .models import SRSRecord, VocabularyItem
from .utils import utc_now

logger = logging.getLogger(__name__)


def next_level(prior_level: int, is_correct: bool) -> int:
    if not is_correct:
        return 0
    return min(prior_level + 1, MAX_SRS_LEVEL)


def due_items(table: dict, now: datetime) -> list[SRSRecord]:
    """Records whose review time has passed, oldest first. Mastered items never return."""
    due = [r for r in table.values() if r.next_review_at <= now and r.level < MAX_SRS_LEVEL]
    due.sort(key=lambda r: r.next_review_at)
    return due


class SRSScheduler:
    """Owns the SRS table: one record per vocabulary key.

    Every mutation is written through to `on_change` with the whole table.
    """

    def __init__(self, table: dict = None, on_change: Callable[[dict], None] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.table = table if table is not None else {}
        self.on_change = on_change
        self.clock = clock

    def get(self, item: VocabularyItem) -> SRSRecord | None:
        return self.table.get(item.key)

    def record_answer(self, item: VocabularyItem, is_correct: bool, now: datetime = None) -> SRSRecord:
        now = now or self.clock()
        existing = self.table.get(item.key)
        prior_level = existing.level if existing else 0
        level = next_level(prior_level, is_correct)
        interval = SRS_INTERVALS[level]
        delay = interval if is_correct else INCORRECT_REVIEW_DELAY

        record = SRSRecord(item, level, interval, now + delay)
        self.table[item.key] = record
        logger.debug(f"SRS {item.key}: level {prior_level} -> {level}")
        if self.on_change:
            self.on_change(self.table)
        return record

    def due_items(self, now: datetime = None) -> list[SRSRecord]:
        return due_items(self.table, now or self.clock())

    def to_dict(self) -> dict:
        return {key: record.to_dict() for key, record in self.table.items()}

    @staticmethod
    def table_from_dict(data: dict) -> dict:
        """Rebuild a table from persisted data, skipping records that fail to parse."""
        table = {}
        for key, value in (data or {}).items():
            try:
                table[key] = SRSRecord.from_dict(value)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed SRS record {key!r}: {e}")
        return table
