"""Word and encouragement generation on top of an AIProvider."""

import logging
import time
from typing import Callable

from .config import (
    GENERATION_MAX_ATTEMPTS, GENERATION_INITIAL_DELAY, WORDS_PER_SESSION,
    FALLBACK_CORRECT, FALLBACK_INCORRECT
)
from .interfaces import AIProvider, RateLimitError
from .models import VocabularyItem
from .utils import uses_only

logger = logging.getLogger(__name__)


class GenerationRequest:
    """Everything the generator needs to produce one session's words."""

    def __init__(self, category: str, allowed_characters: set[str] | None, difficulty: str,
                 topic: str | None = None, priority_characters: list[str] = None,
                 count: int = WORDS_PER_SESSION, request_id: str = None):
        self.category = category
        self.allowed_characters = allowed_characters
        self.difficulty = difficulty
        self.topic = topic
        self.priority_characters = priority_characters or []
        self.count = count
        self.request_id = request_id

    def to_dict(self) -> dict:
        return {
            'category': self.category,
            'allowed_characters': sorted(self.allowed_characters) if self.allowed_characters is not None else None,
            'difficulty': self.difficulty,
            'topic': self.topic,
            'priority_characters': self.priority_characters,
            'count': self.count
        }


def parse_items(raw_items, allowed: set[str] | None) -> list[VocabularyItem]:
    """Turn provider output into VocabularyItems.

    Drops entries that are malformed, that use characters outside a closed
    allowed set, or whose native text repeats an earlier entry.
    """
    if not isinstance(raw_items, list):
        logger.warning(f"Generator returned {type(raw_items).__name__}, expected list")
        return []

    items = []
    seen = set()
    for raw in raw_items:
        try:
            item = VocabularyItem.from_dict(raw)
        except (KeyError, TypeError, AttributeError):
            logger.warning(f"Dropping malformed item: {raw!r}")
            continue
        if not isinstance(item.native, str) or not isinstance(item.transliteration, str):
            logger.warning(f"Dropping malformed item: {raw!r}")
            continue
        native = item.native.strip()
        romaji = item.transliteration.strip()
        if not native or not romaji:
            continue
        if allowed is not None and not uses_only(native, allowed):
            logger.info(f"Dropping {native!r}: uses characters outside the selected rows")
            continue
        if native in seen:
            continue
        seen.add(native)
        items.append(VocabularyItem(native, romaji, str(item.gloss or '').strip()))
    return items


class WordService:
    """Fetches vocabulary, retrying with exponential backoff on rate limits."""

    def __init__(self, provider: AIProvider, max_attempts: int = GENERATION_MAX_ATTEMPTS,
                 initial_delay: float = GENERATION_INITIAL_DELAY,
                 sleep: Callable[[float], None] = time.sleep):
        self.provider = provider
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.sleep = sleep

    def generate(self, request: GenerationRequest) -> list[VocabularyItem]:
        """Returns usable items, or an empty list when none could be obtained."""
        delay = self.initial_delay
        for attempt in range(1, self.max_attempts + 1):
            try:
                raw_items = self.provider.generate_words(request)
            except RateLimitError as e:
                if attempt == self.max_attempts:
                    logger.error(f"Word generation rate limited, giving up after {attempt} attempts: {e}")
                    return []
                logger.warning(f"Word generation rate limited (attempt {attempt}), retrying in {delay}s")
                self.sleep(delay)
                delay *= 2
                continue
            except Exception as e:
                logger.error(f"Word generation failed: {e}")
                return []
            return parse_items(raw_items, request.allowed_characters)
        return []


class EncouragementService:
    """Short feedback messages with a canned fallback keyed on correctness."""

    def __init__(self, provider: AIProvider):
        self.provider = provider

    @staticmethod
    def fallback(is_correct: bool) -> str:
        return FALLBACK_CORRECT if is_correct else FALLBACK_INCORRECT

    def encourage(self, is_correct: bool, name: str, score: int | None = None) -> str:
        try:
            text = self.provider.get_encouragement(is_correct, name, score)
        except Exception as e:
            logger.warning(f"Encouragement failed, using fallback: {e}")
            return self.fallback(is_correct)
        text = (text or '').strip()
        return text or self.fallback(is_correct)
