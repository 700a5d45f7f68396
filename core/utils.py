"""Utility functions for nihongo application."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Default time source. Engine components accept any callable like this one."""
    return datetime.now(timezone.utc)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Milliseconds between two instants, never negative."""
    return max(0, int((end - start).total_seconds() * 1000))


def normalize_answer(text: str) -> str:
    """Normalize romaji for comparison: trimmed and case-insensitive."""
    return (text or '').strip().lower()


def uses_only(text: str, allowed: set[str]) -> bool:
    """True if every character of text is in the allowed set."""
    return all(char in allowed for char in text)
