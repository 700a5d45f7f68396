"""Configuration constants for nihongo application."""

from datetime import timedelta

# Scoring
BASE_POINTS = 500
MAX_SPEED_BONUS = 500
SPEED_BONUS_STEP_MS = 20     # One bonus point lost per step
DIFFICULTY_MULTIPLIERS = {
    'Easy': 0.7,
    'Medium': 1.0,
    'Hard': 1.5,
}

# Streak multiplier
STREAK_INCREMENT = 0.1
MAX_MULTIPLIER = 2.0

# Spaced repetition
MAX_SRS_LEVEL = 8
SRS_INTERVALS = [
    timedelta(0),              # 0: immediate
    timedelta(hours=1),
    timedelta(days=1),
    timedelta(days=3),
    timedelta(days=7),
    timedelta(days=14),
    timedelta(days=30),
    timedelta(days=90),
    timedelta(days=180),       # 8: mastered
]
INCORRECT_REVIEW_DELAY = timedelta(minutes=5)

# Session
FEEDBACK_DELAY_MS = 2000
HISTORY_LIMIT = 50
WORDS_PER_SESSION = 10

# Analytics
TOP_STRUGGLED_WORDS = 10
PRIORITY_CHARACTER_LIMIT = 10

# Word generation retries (rate limits only)
GENERATION_MAX_ATTEMPTS = 3
GENERATION_INITIAL_DELAY = 1.0  # seconds, doubled after each attempt

# Encouragement fallbacks
FALLBACK_CORRECT = "Subarashii! Great job!"
FALLBACK_INCORRECT = "Don't give up! Ganbare!"
