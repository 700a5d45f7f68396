"""Domain models for nihongo application."""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import NamedTuple

from .config import MAX_SRS_LEVEL, SRS_INTERVALS


class Difficulty(str, Enum):
    EASY = 'Easy'
    MEDIUM = 'Medium'
    HARD = 'Hard'


class LearningType(str, Enum):
    HIRAGANA = 'Hiragana'
    KATAKANA = 'Katakana'
    KANJI = 'Kanji'
    CUSTOM = 'Custom'
    REVIEW = 'Review'


class Feedback(str, Enum):
    NONE = 'none'
    CORRECT = 'correct'
    INCORRECT = 'incorrect'


class SessionState(str, Enum):
    IDLE = 'idle'
    CONFIGURING = 'configuring'
    LOADING = 'loading'
    ACTIVE = 'active'
    REVIEW_ACTIVE = 'review_active'
    FINISHED = 'finished'


class VocabularyItem(NamedTuple):
    """A single word: native script, its romaji and an English gloss."""

    native: str
    transliteration: str
    gloss: str

    @property
    def key(self) -> str:
        """Identity key. Two items rendering identically share SRS state."""
        return self.native

    def to_dict(self) -> dict:
        return {
            'japanese': self.native,
            'romaji': self.transliteration,
            'meaning': self.gloss
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'VocabularyItem':
        return cls(data['japanese'], data['romaji'], data.get('meaning', ''))


def _to_timestamp(value: datetime) -> float:
    return value.timestamp()


def _from_timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class SRSRecord:
    """Scheduling state for one vocabulary item."""

    def __init__(self, item: VocabularyItem, level: int, interval: timedelta,
                 next_review_at: datetime):
        self.item = item
        self.level = level
        self.interval = interval
        self.next_review_at = next_review_at

    @property
    def is_mastered(self) -> bool:
        return self.level >= MAX_SRS_LEVEL

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at <= now and not self.is_mastered

    def to_dict(self) -> dict:
        return {
            'word': self.item.to_dict(),
            'level': self.level,
            'interval': self.interval.total_seconds(),
            'next_review': _to_timestamp(self.next_review_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SRSRecord':
        level = int(data['level'])
        if level not in range(MAX_SRS_LEVEL + 1):
            raise ValueError(f"SRS level out of range: {level}")
        # Interval is derived from the level table
        return cls(
            VocabularyItem.from_dict(data['word']),
            level,
            SRS_INTERVALS[level],
            _from_timestamp(data['next_review'])
        )

    def __repr__(self) -> str:
        return f"SRSRecord({self.item.native!r}, level={self.level}, next={self.next_review_at.isoformat()})"


class SessionResult:
    """Summary of a completed practice session."""

    def __init__(self, date: datetime, category: str, difficulty: str, score: int,
                 accuracy: int, total_answered: int, struggled: list,
                 max_streak: int, result_id: str = None):
        self.id = result_id or str(uuid.uuid4())[:8]
        self.date = date
        self.category = category
        self.difficulty = difficulty
        self.score = score
        self.accuracy = accuracy
        self.total_answered = total_answered
        self.struggled = list(struggled)
        self.max_streak = max_streak

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'date': _to_timestamp(self.date),
            'type': self.category,
            'difficulty': self.difficulty,
            'score': self.score,
            'accuracy': self.accuracy,
            'total_answered': self.total_answered,
            'struggled_words': [item.to_dict() for item in self.struggled],
            'max_streak': self.max_streak
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionResult':
        return cls(
            date=_from_timestamp(data['date']),
            category=data['type'],
            difficulty=data['difficulty'],
            score=int(data['score']),
            accuracy=int(data['accuracy']),
            total_answered=int(data['total_answered']),
            struggled=[VocabularyItem.from_dict(w) for w in data.get('struggled_words', [])],
            max_streak=int(data.get('max_streak', 0)),
            result_id=data.get('id')
        )
