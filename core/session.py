"""Practice session state machine.

    idle -> configuring -> loading -> active -> finished
    idle -> review_active -> finished

Any non-idle state can exit back to idle. Answers are scored and committed to
the SRS table immediately; the move to the next item happens after a
feedback delay scheduled through `scheduler.call_later(delay, callback, *args)`
(an asyncio event loop fits). Timer callbacks and generation results carry the
session or request id they were issued for and are dropped once it is stale.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable

from .analytics import analyze_weaknesses, priority_characters
from .characters import get_allowed_characters, is_closed_category, OPEN_CATEGORY_HINT
from .config import FEEDBACK_DELAY_MS
from .generation import GenerationRequest, WordService
from .models import (
    Difficulty, Feedback, LearningType, SessionResult, SessionState, SRSRecord, VocabularyItem
)
from .progress import LearnerProgress
from .scoring import compute_points, StreakTracker
from .utils import elapsed_ms, normalize_answer, utc_now

logger = logging.getLogger(__name__)

NO_WORDS_MESSAGE = "No words available. Try selecting more characters."


class SessionError(Exception):
    """Operation not allowed in the current session state."""


class SessionConfig:
    def __init__(self, category: LearningType, rows: list[str] = None,
                 difficulty: Difficulty = Difficulty.MEDIUM, is_endless: bool = False,
                 topic: str | None = None):
        self.category = category
        self.rows = list(rows or [])
        self.difficulty = difficulty
        self.is_endless = is_endless
        self.topic = topic

    def validate(self) -> None:
        if self.category == LearningType.REVIEW:
            raise SessionError("Review sessions are started from due items")
        if is_closed_category(self.category) and not self.rows:
            raise SessionError("Select at least one character row")
        if self.category == LearningType.CUSTOM and not (self.topic or '').strip():
            raise SessionError("Custom sessions need a topic")


class AnswerOutcome:
    def __init__(self, session_id: str, is_correct: bool, points: int, expected: str,
                 streak: int, multiplier: float, record: SRSRecord):
        self.session_id = session_id
        self.is_correct = is_correct
        self.points = points
        self.expected = expected
        self.streak = streak
        self.multiplier = multiplier
        self.record = record


class Session:
    """Transient state for one practice run. Never persisted."""

    def __init__(self, queue: list[VocabularyItem], category: LearningType, difficulty: Difficulty,
                 is_endless: bool, is_review: bool, started_at: datetime):
        self.id = str(uuid.uuid4())[:8]
        self.queue = list(queue)
        self.category = category
        self.difficulty = difficulty
        self.is_endless = is_endless
        self.is_review = is_review
        self.position = 0
        self.score = 0
        self.feedback = Feedback.NONE
        self.item_started_at = started_at
        self.tracker = StreakTracker()
        self.correct_count = 0
        self.answered = 0
        self.struggled = []
        self.compliment = 'Ready? Start typing the romaji!'

    @property
    def current_item(self) -> VocabularyItem:
        return self.queue[self.position]

    @property
    def accuracy(self) -> int:
        if not self.answered:
            return 0
        # Halves round up: 1 of 8 is 13%
        return int(self.correct_count * 100 / self.answered + 0.5)


class SessionOrchestrator:
    """Drives a queue of words through answer, feedback and advance."""

    def __init__(self, progress: LearnerProgress, word_service: WordService = None,
                 scheduler=None, clock: Callable[[], datetime] = utc_now,
                 feedback_delay_ms: int = FEEDBACK_DELAY_MS):
        self.progress = progress
        self.word_service = word_service
        # Without a scheduler the caller is responsible for calling advance()
        self.scheduler = scheduler
        self.clock = clock
        self.feedback_delay_ms = feedback_delay_ms
        self.state = SessionState.IDLE
        self.config = None
        self.session = None
        self.error = None
        self.last_result = None
        self._pending_request_id = None
        self._advance_handle = None

    # Configuration and loading

    def configure(self, config: SessionConfig) -> None:
        if self.state not in (SessionState.IDLE, SessionState.CONFIGURING, SessionState.FINISHED):
            raise SessionError(f"Cannot configure a session while {self.state.value}")
        self.state = SessionState.CONFIGURING
        self.config = config
        self.session = None
        self.error = None
        self.last_result = None

    def begin_loading(self, config: SessionConfig = None) -> GenerationRequest:
        """Enter loading and build the generation request for the configured session."""
        if self.state == SessionState.LOADING:
            raise SessionError("Words are already being generated")
        if config is not None:
            self.configure(config)
        if self.state != SessionState.CONFIGURING or self.config is None:
            raise SessionError("Configure a session first")
        self.config.validate()

        allowed = get_allowed_characters(self.config.category, self.config.rows)
        report = analyze_weaknesses(self.progress.history)
        request = GenerationRequest(
            category=self.config.category.value,
            allowed_characters=allowed,
            difficulty=self.config.difficulty.value,
            topic=self.config.topic or OPEN_CATEGORY_HINT.get(self.config.category),
            priority_characters=priority_characters(report, allowed),
            request_id=str(uuid.uuid4())[:8]
        )
        self._pending_request_id = request.request_id
        self.state = SessionState.LOADING
        self.error = None
        return request

    def load(self, words: list[VocabularyItem], request_id: str = None) -> bool:
        """Complete a load. Returns True if a session became active."""
        if self.state != SessionState.LOADING:
            logger.info("Discarding generated words: no load in progress")
            return False
        if request_id is not None and request_id != self._pending_request_id:
            logger.info(f"Discarding generated words for stale request {request_id}")
            return False
        self._pending_request_id = None

        if not words:
            self.state = SessionState.CONFIGURING
            self.error = NO_WORDS_MESSAGE
            logger.warning("Session start aborted: generator returned no usable words")
            return False

        self.session = Session(words, self.config.category, self.config.difficulty,
                               is_endless=self.config.is_endless, is_review=False,
                               started_at=self.clock())
        self.state = SessionState.ACTIVE
        logger.info(f"Session {self.session.id} started: {self.config.category.value}, "
                    f"{len(words)} words, endless={self.config.is_endless}")
        return True

    def start(self, config: SessionConfig) -> bool:
        """Configure, generate and load in one synchronous call."""
        if self.word_service is None:
            raise SessionError("No word service configured")
        request = self.begin_loading(config)
        words = self.word_service.generate(request)
        return self.load(words, request.request_id)

    def start_review(self, items: list[VocabularyItem], difficulty: Difficulty = Difficulty.MEDIUM) -> None:
        """Start a fixed-length session over due items, skipping generation."""
        if self.state not in (SessionState.IDLE, SessionState.CONFIGURING, SessionState.FINISHED):
            raise SessionError(f"Cannot start a review while {self.state.value}")
        if not items:
            raise SessionError("No items are due for review")
        self.config = None
        self.error = None
        self.last_result = None
        self.session = Session(items, LearningType.REVIEW, difficulty,
                               is_endless=False, is_review=True, started_at=self.clock())
        self.state = SessionState.REVIEW_ACTIVE
        logger.info(f"Review session {self.session.id} started: {len(items)} due items")

    # Answering

    @property
    def is_running(self) -> bool:
        return self.state in (SessionState.ACTIVE, SessionState.REVIEW_ACTIVE)

    def submit_answer(self, user_text: str) -> AnswerOutcome | None:
        """Score and commit an answer. No-op (None) while feedback is showing."""
        if not self.is_running or self.session.feedback != Feedback.NONE:
            return None
        if not normalize_answer(user_text):
            return None

        session = self.session
        item = session.current_item
        now = self.clock()
        is_correct = normalize_answer(user_text) == normalize_answer(item.transliteration)

        points = compute_points(elapsed_ms(session.item_started_at, now), is_correct,
                                session.difficulty, session.tracker.multiplier)
        session.tracker.record(is_correct)
        session.score += points
        record = self.progress.srs.record_answer(item, is_correct, now)

        session.answered += 1
        if is_correct:
            session.correct_count += 1
            session.feedback = Feedback.CORRECT
        else:
            session.struggled.append(item)
            session.feedback = Feedback.INCORRECT

        if self.scheduler is not None:
            self._advance_handle = self.scheduler.call_later(
                self.feedback_delay_ms / 1000, self._on_feedback_elapsed, session.id
            )

        return AnswerOutcome(session.id, is_correct, points, item.transliteration,
                             session.tracker.streak, session.tracker.multiplier, record)

    def _on_feedback_elapsed(self, session_id: str) -> None:
        if self.session is None or self.session.id != session_id:
            return
        self._advance_handle = None
        self.advance()

    def advance(self) -> None:
        """Leave the feedback display: next item, wrap around, or finish."""
        if not self.is_running or self.session.feedback == Feedback.NONE:
            return
        session = self.session
        next_position = session.position + 1
        if next_position >= len(session.queue):
            if not session.is_endless:
                self._complete()
                return
            next_position = 0
        session.position = next_position
        session.feedback = Feedback.NONE
        session.item_started_at = self.clock()

    def _complete(self) -> None:
        session = self.session
        result = SessionResult(
            date=self.clock(),
            category=session.category.value,
            difficulty=session.difficulty.value,
            score=session.score,
            accuracy=session.accuracy,
            total_answered=session.answered,
            struggled=session.struggled,
            max_streak=session.tracker.max_streak
        )
        self.state = SessionState.FINISHED
        self.last_result = result
        logger.info(f"Session {session.id} finished: score={result.score} accuracy={result.accuracy}%")
        self.progress.record_result(result)

    def _cancel_pending(self) -> None:
        if self._advance_handle is not None:
            self._advance_handle.cancel()
            self._advance_handle = None

    # Leaving

    def finish(self) -> SessionResult | None:
        """End an endless drill and record what was answered. Fixed-length sessions ignore it."""
        if self.state != SessionState.ACTIVE or not self.session.is_endless:
            return None
        self._cancel_pending()
        if self.session.answered:
            self._complete()
        else:
            self.state = SessionState.FINISHED
        return self.last_result

    def exit(self) -> None:
        """Abandon whatever is in progress. Nothing is recorded."""
        if self.state == SessionState.IDLE:
            return
        self._cancel_pending()
        if self.session is not None:
            logger.info(f"Session {self.session.id} abandoned")
        self.session = None
        self.config = None
        self._pending_request_id = None
        self.error = None
        self.last_result = None
        self.state = SessionState.IDLE

    def set_compliment(self, session_id: str, text: str) -> bool:
        if self.session is None or self.session.id != session_id:
            return False
        self.session.compliment = text
        return True

    def snapshot(self) -> dict:
        """Read-only view for the presentation layer."""
        snap = {
            'state': self.state.value,
            'error': self.error,
            'last_result': self.last_result.to_dict() if self.last_result else None,
            'session_id': None,
            'position': 0,
            'queue_length': 0,
            'current_item': None,
            'answer': None,
            'feedback': Feedback.NONE.value,
            'score': 0,
            'streak': 0,
            'multiplier': 1.0,
            'max_streak': 0,
            'compliment': '',
            'is_endless': False,
            'is_review': False,
            'category': self.config.category.value if self.config else None,
            'difficulty': self.config.difficulty.value if self.config else None,
        }
        session = self.session
        if session is None:
            return snap
        item = session.current_item
        snap.update({
            'session_id': session.id,
            'position': session.position,
            'queue_length': len(session.queue),
            'current_item': {'japanese': item.native},
            'feedback': session.feedback.value,
            'score': session.score,
            'streak': session.tracker.streak,
            'multiplier': session.tracker.multiplier,
            'max_streak': session.tracker.max_streak,
            'compliment': session.compliment,
            'is_endless': session.is_endless,
            'is_review': session.is_review,
            'category': session.category.value,
            'difficulty': session.difficulty.value,
        })
        if session.feedback != Feedback.NONE:
            snap['current_item'] = item.to_dict()
            snap['answer'] = item.transliteration
        return snap
