"""Achievement definitions and the evaluator that unlocks them.

Each achievement carries a `Rule`: a kind plus parameters. The evaluator
looks the kind up in RULE_CHECKS, so adding an achievement only means adding
an entry to ACHIEVEMENTS (and, for a brand new kind, one check function).
Checks are pure functions of (history, srs_table).
"""

import logging

from .config import MAX_SRS_LEVEL

logger = logging.getLogger(__name__)


class Rule:
    def __init__(self, kind: str, **params):
        self.kind = kind
        self.params = params

    def __repr__(self) -> str:
        return f"Rule({self.kind!r}, {self.params})"


class Achievement:
    def __init__(self, id: str, title: str, description: str, icon: str, category: str, rule: Rule):
        self.id = id
        self.title = title
        self.description = description
        self.icon = icon
        self.category = category
        self.rule = rule

    def to_dict(self, unlocked: bool = False) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'icon': self.icon,
            'category': self.category,
            'unlocked': unlocked
        }


def _srs_level_count(history: list, srs_table: dict, min_level: int, count: int) -> bool:
    return sum(1 for r in srs_table.values() if r.level >= min_level) >= count


def _perfect_session(history: list, srs_table: dict, min_answered: int) -> bool:
    return any(r.accuracy == 100 and r.total_answered >= min_answered for r in history)


def _accuracy_sessions(history: list, srs_table: dict, min_accuracy: int, count: int) -> bool:
    return sum(1 for r in history if r.accuracy >= min_accuracy) >= count


def _streak_reached(history: list, srs_table: dict, min_streak: int) -> bool:
    return any(r.max_streak >= min_streak for r in history)


RULE_CHECKS = {
    'srs_level_count': _srs_level_count,
    'perfect_session': _perfect_session,
    'accuracy_sessions': _accuracy_sessions,
    'streak_reached': _streak_reached,
}


ACHIEVEMENTS = [
    Achievement('srs_novice', 'First Steps', 'Get 5 words into your review schedule',
                '🌱', 'SRS', Rule('srs_level_count', min_level=1, count=5)),
    Achievement('srs_adept', 'Growing Roots', 'Reach level 4 or higher on 10 words',
                '🌿', 'SRS', Rule('srs_level_count', min_level=4, count=10)),
    Achievement('srs_master', 'Sensei', 'Fully master 5 words',
                '🌸', 'SRS', Rule('srs_level_count', min_level=MAX_SRS_LEVEL, count=5)),
    Achievement('perfect_session', 'Perfectionist', 'Finish a session of 5+ words with 100% accuracy',
                '🎯', 'Accuracy', Rule('perfect_session', min_answered=5)),
    Achievement('consistent', 'Consistency', 'Score 90% accuracy or better in 3 sessions',
                '📈', 'Accuracy', Rule('accuracy_sessions', min_accuracy=90, count=3)),
    Achievement('streak_10', 'On Fire', 'Reach a streak of 10 in one session',
                '🔥', 'Streak', Rule('streak_reached', min_streak=10)),
]

ACHIEVEMENTS_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def check_rule(rule: Rule, history: list, srs_table: dict) -> bool:
    return RULE_CHECKS[rule.kind](history, srs_table, **rule.params)


def evaluate(unlocked: set, history: list, srs_table: dict,
             achievements: list = None) -> list[str]:
    """Unlock every achievement whose rule now holds.

    Adds newly earned ids to `unlocked` in place and returns them. Ids already
    present are never re-checked or removed.
    """
    newly_unlocked = []
    for achievement in achievements if achievements is not None else ACHIEVEMENTS:
        if achievement.id in unlocked:
            continue
        if check_rule(achievement.rule, history, srs_table):
            unlocked.add(achievement.id)
            newly_unlocked.append(achievement.id)
            logger.info(f"Achievement unlocked: {achievement.id}")
    return newly_unlocked
