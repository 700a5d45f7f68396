"""Point awards and streak multiplier."""

from .config import (
    BASE_POINTS, MAX_SPEED_BONUS, SPEED_BONUS_STEP_MS, DIFFICULTY_MULTIPLIERS,
    STREAK_INCREMENT, MAX_MULTIPLIER
)


def compute_points(elapsed_ms: int, is_correct: bool, difficulty: str, multiplier: float) -> int:
    """Points for one answer.

    The speed bonus drops by one point every SPEED_BONUS_STEP_MS and is gone
    after MAX_SPEED_BONUS * SPEED_BONUS_STEP_MS (10s with defaults).
    """
    if not is_correct:
        return 0
    elapsed_ms = max(0, int(elapsed_ms))
    speed_bonus = max(0, MAX_SPEED_BONUS - elapsed_ms // SPEED_BONUS_STEP_MS)
    # Accept Difficulty members as well as their plain string values
    difficulty_multiplier = DIFFICULTY_MULTIPLIERS[getattr(difficulty, 'value', difficulty)]
    return int((BASE_POINTS + speed_bonus) * multiplier * difficulty_multiplier)


class StreakTracker:
    """Tracks consecutive correct answers within one session."""

    def __init__(self):
        self.streak = 0
        self.multiplier = 1.0
        self.max_streak = 0

    def record(self, is_correct: bool) -> None:
        if is_correct:
            self.streak += 1
            self.multiplier = min(MAX_MULTIPLIER, 1.0 + self.streak * STREAK_INCREMENT)
            self.max_streak = max(self.max_streak, self.streak)
        else:
            self.streak = 0
            self.multiplier = 1.0
