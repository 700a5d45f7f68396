from .models import (
    Difficulty, LearningType, Feedback, SessionState,
    VocabularyItem, SRSRecord, SessionResult
)
from .interfaces import AIProvider, Storage, RateLimitError
from .scoring import compute_points, StreakTracker
from .srs import SRSScheduler, due_items
from .analytics import analyze_weaknesses, priority_characters, mastery_stats, history_summary
from .achievements import ACHIEVEMENTS, evaluate
from .generation import GenerationRequest, WordService, EncouragementService
from .progress import LearnerProgress
from .session import SessionOrchestrator, SessionConfig, SessionError
from .config import (
    BASE_POINTS, MAX_SPEED_BONUS, STREAK_INCREMENT, MAX_MULTIPLIER,
    MAX_SRS_LEVEL, SRS_INTERVALS, INCORRECT_REVIEW_DELAY,
    FEEDBACK_DELAY_MS, HISTORY_LIMIT
)

__all__ = [
    'Difficulty', 'LearningType', 'Feedback', 'SessionState',
    'VocabularyItem', 'SRSRecord', 'SessionResult',
    'AIProvider', 'Storage', 'RateLimitError',
    'compute_points', 'StreakTracker',
    'SRSScheduler', 'due_items',
    'analyze_weaknesses', 'priority_characters', 'mastery_stats', 'history_summary',
    'ACHIEVEMENTS', 'evaluate',
    'GenerationRequest', 'WordService', 'EncouragementService',
    'LearnerProgress',
    'SessionOrchestrator', 'SessionConfig', 'SessionError',
    'BASE_POINTS', 'MAX_SPEED_BONUS', 'STREAK_INCREMENT', 'MAX_MULTIPLIER',
    'MAX_SRS_LEVEL', 'SRS_INTERVALS', 'INCORRECT_REVIEW_DELAY',
    'FEEDBACK_DELAY_MS', 'HISTORY_LIMIT'
]
