"""Weakness rankings and mastery statistics derived from history and the SRS table."""

from datetime import datetime

from .characters import get_group_id
from .config import MAX_SRS_LEVEL, TOP_STRUGGLED_WORDS, PRIORITY_CHARACTER_LIMIT
from .srs import due_items


class WeaknessReport:
    """Ranked fail counts. Each list holds (key, count) pairs, highest count first."""

    def __init__(self, struggled_words: list, weak_characters: list, weak_groups: list):
        self.struggled_words = struggled_words
        self.weak_characters = weak_characters
        self.weak_groups = weak_groups

    def to_dict(self) -> dict:
        return {
            'struggled_words': [
                {'word': item.to_dict(), 'count': count} for item, count in self.struggled_words
            ],
            'weak_characters': [
                {'character': char, 'count': count} for char, count in self.weak_characters
            ],
            'weak_groups': [
                {'group': group, 'count': count} for group, count in self.weak_groups
            ]
        }


def _rank(counts: dict) -> list:
    # sorted() is stable, so equal counts keep first-encounter order
    return sorted(counts.items(), key=lambda pair: pair[1], reverse=True)


def analyze_weaknesses(history: list) -> WeaknessReport:
    """Count failures per word, per character and per character row across all sessions."""
    word_counts = {}
    items = {}
    char_counts = {}
    group_counts = {}

    for result in history:
        for item in result.struggled:
            items.setdefault(item.key, item)
            word_counts[item.key] = word_counts.get(item.key, 0) + 1
            for char in item.native:
                char_counts[char] = char_counts.get(char, 0) + 1
                group_id = get_group_id(char)
                if group_id:
                    group_counts[group_id] = group_counts.get(group_id, 0) + 1

    struggled = [(items[key], count) for key, count in _rank(word_counts)[:TOP_STRUGGLED_WORDS]]
    return WeaknessReport(struggled, _rank(char_counts), _rank(group_counts))


def priority_characters(report: WeaknessReport, allowed: set[str] | None,
                        limit: int = PRIORITY_CHARACTER_LIMIT) -> list[str]:
    """Weak characters to bias generation toward.

    For closed categories the ranking is restricted to the active set so the
    generator is never asked for characters the session cannot use.
    """
    chars = [char for char, _ in report.weak_characters]
    if allowed is not None:
        chars = [char for char in chars if char in allowed]
    return chars[:limit]


def mastery_stats(srs_table: dict, now: datetime) -> dict:
    """Item counts per SRS level plus learning/mastered/due totals."""
    levels = {level: 0 for level in range(MAX_SRS_LEVEL + 1)}
    for record in srs_table.values():
        levels[record.level] = levels.get(record.level, 0) + 1
    return {
        'levels': levels,
        'total': len(srs_table),
        'mastered': levels[MAX_SRS_LEVEL],
        'learning': sum(count for level, count in levels.items() if 0 < level < MAX_SRS_LEVEL),
        'due': len(due_items(srs_table, now))
    }


def history_summary(history: list) -> dict:
    if not history:
        return {
            'sessions': 0, 'average_accuracy': 0, 'best_score': 0,
            'total_answered': 0, 'best_streak': 0
        }
    return {
        'sessions': len(history),
        'average_accuracy': int(sum(r.accuracy for r in history) / len(history) + 0.5),
        'best_score': max(r.score for r in history),
        'total_answered': sum(r.total_answered for r in history),
        'best_streak': max(r.max_streak for r in history)
    }
