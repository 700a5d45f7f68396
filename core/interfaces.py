"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

# Persistence slots, each rewritten wholesale on change
SLOT_DISPLAY_NAME = 'display_name'
SLOT_HISTORY = 'history'
SLOT_SRS = 'srs'
SLOT_ACHIEVEMENTS = 'achievements'
SLOTS = [SLOT_DISPLAY_NAME, SLOT_HISTORY, SLOT_SRS, SLOT_ACHIEVEMENTS]


class RateLimitError(Exception):
    """Raised by a provider when the remote service rejects a call for quota reasons."""


class AIProvider(ABC):
    """Abstract base class for AI/LLM provider."""

    @abstractmethod
    def generate_words(self, request) -> list[dict]:
        """Generate vocabulary for a GenerationRequest.
        Returns a list of {japanese, romaji, meaning} dicts (possibly empty).
        Raises RateLimitError when rate limited."""
        pass

    @abstractmethod
    def get_encouragement(self, is_correct: bool, name: str, score: int | None = None) -> str:
        """Get a short encouraging message after an answer."""
        pass


class Storage(ABC):
    """Abstract base class for a key to JSON blob store."""

    @abstractmethod
    def load_config(self) -> dict:
        """Load configuration. Returns config dict."""
        pass

    @abstractmethod
    def load(self, slot: str):
        """Load a slot's JSON value. Returns None if absent or unreadable."""
        pass

    @abstractmethod
    def save(self, slot: str, value) -> None:
        """Replace a slot's value."""
        pass
