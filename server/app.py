"""FastAPI server for nihongo application."""

import asyncio
import logging
import os

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel
from typing import Optional

from core.achievements import ACHIEVEMENTS
from core.analytics import analyze_weaknesses, mastery_stats, history_summary
from core.characters import get_rows, get_group_label
from core.config import FEEDBACK_DELAY_MS
from core.generation import WordService, EncouragementService
from core.interfaces import AIProvider, Storage
from core.models import Difficulty, LearningType, SessionState
from core.progress import LearnerProgress
from core.session import SessionOrchestrator, SessionConfig, SessionError

from server.file_storage import FileStorage

logger = logging.getLogger(__name__)


# Pydantic models for API
class ProfileRequest(BaseModel):
    display_name: str


class StartRequest(BaseModel):
    category: LearningType
    rows: list[str] = []
    difficulty: Difficulty = Difficulty.MEDIUM
    is_endless: bool = False
    topic: Optional[str] = None


class ReviewRequest(BaseModel):
    difficulty: Difficulty = Difficulty.MEDIUM


class AnswerRequest(BaseModel):
    answer: str


class SessionSnapshot(BaseModel):
    state: str
    error: Optional[str]
    last_result: Optional[dict]
    session_id: Optional[str]
    position: int
    queue_length: int
    current_item: Optional[dict]
    answer: Optional[str]
    feedback: str
    score: int
    streak: int
    multiplier: float
    max_streak: int
    compliment: str
    is_endless: bool
    is_review: bool
    category: Optional[str]
    difficulty: Optional[str]


class AnswerResponse(BaseModel):
    correct: bool
    points: int
    expected: str
    score: int
    streak: int
    multiplier: float
    srs_level: int
    next_review: str
    feedback_delay_ms: int
    unlocked: list[str]


class LoopScheduler:
    """Schedules orchestrator timers on whichever event loop is serving the request."""

    def call_later(self, delay: float, callback, *args):
        return asyncio.get_running_loop().call_later(delay, callback, *args)


# Global state: a single learner per server process
storage: Storage = None
ai_provider: AIProvider = None
progress: LearnerProgress = None
orchestrator: SessionOrchestrator = None
word_service: WordService = None
encouragement_service: EncouragementService = None

# Keep references so in-flight encouragement tasks are not garbage collected
background_tasks: set = set()


def init_state(new_storage: Storage, provider: AIProvider, sleep=None) -> None:
    """Wire storage and provider into the engine."""
    global storage, ai_provider, progress, orchestrator, word_service, encouragement_service
    storage = new_storage
    ai_provider = provider
    progress = LearnerProgress(storage)
    if sleep is not None:
        word_service = WordService(provider, sleep=sleep)
    else:
        word_service = WordService(provider)
    encouragement_service = EncouragementService(provider)
    orchestrator = SessionOrchestrator(progress, word_service, scheduler=LoopScheduler())
    logger.info(f"Loaded progress: {len(progress.history)} sessions, {len(progress.srs.table)} SRS items")


app = FastAPI(title="Nihongo API", description="Japanese vocabulary drill API")


@app.on_event("startup")
async def startup():
    """Initialize storage and AI provider on startup."""
    logging.basicConfig(level=logging.INFO)
    if orchestrator is not None:
        return

    # File storage by default, set NIHONGO_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('NIHONGO_STORAGE', 'file')
    if storage_type == 'postgres':
        from server.postgres_storage import PostgresStorage
        selected_storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        selected_storage = FileStorage()
        logger.info("Using file storage")

    # Get API key from environment variable first, then fall back to config file
    api_key = os.environ.get('GEMINI_API_KEY')
    if not api_key:
        try:
            config = selected_storage.load_config()
            api_key = config.get('gemini_api_key')
        except FileNotFoundError:
            pass

    if not api_key:
        raise RuntimeError(
            "GEMINI_API_KEY environment variable not set and config file not found. "
            "Set GEMINI_API_KEY or create ~/.config/nihongo/config.json"
        )

    from server.gemini_provider import GeminiProvider
    init_state(selected_storage, GeminiProvider(api_key, model_name='gemini-2.0-flash'))


@app.get("/")
async def root():
    """Health check."""
    return {"service": "nihongo", "status": "ok"}


# Profile
@app.get("/api/profile")
async def get_profile():
    return {"display_name": progress.display_name}


@app.post("/api/profile")
async def set_profile(request: ProfileRequest):
    name = request.display_name.strip()
    if not name:
        raise HTTPException(status_code=422, detail="Display name cannot be empty")
    progress.set_display_name(name)
    return {"display_name": progress.display_name}


@app.get("/api/rows/{category}")
async def list_rows(category: LearningType):
    """Selectable character rows for a category (empty for open categories)."""
    return {"category": category.value, "rows": get_rows(category)}


# Session
@app.get("/api/session", response_model=SessionSnapshot)
async def get_session():
    return orchestrator.snapshot()


async def send_encouragement(session_id: str, is_correct: bool, points: int) -> None:
    """Fetch a compliment off the event loop and attach it if the session is still current."""
    loop = asyncio.get_running_loop()
    text = await loop.run_in_executor(
        None,
        lambda: encouragement_service.encourage(is_correct, progress.display_name, points)
    )
    orchestrator.set_compliment(session_id, text)


@app.post("/api/session/start", response_model=SessionSnapshot)
async def start_session(request: StartRequest):
    """Generate words and start a practice session."""
    config = SessionConfig(
        category=request.category,
        rows=request.rows,
        difficulty=request.difficulty,
        is_endless=request.is_endless,
        topic=request.topic
    )
    try:
        generation_request = orchestrator.begin_loading(config)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    loop = asyncio.get_running_loop()
    words = await loop.run_in_executor(None, word_service.generate, generation_request)

    if not orchestrator.load(words, generation_request.request_id):
        if orchestrator.state == SessionState.CONFIGURING and orchestrator.error:
            raise HTTPException(status_code=422, detail=orchestrator.error)
        raise HTTPException(status_code=409, detail="Session was cancelled while loading")
    return orchestrator.snapshot()


@app.post("/api/session/review", response_model=SessionSnapshot)
async def start_review(request: ReviewRequest):
    """Start a review session over every due item."""
    items = [record.item for record in progress.due_items()]
    try:
        orchestrator.start_review(items, request.difficulty)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return orchestrator.snapshot()


@app.post("/api/session/answer", response_model=AnswerResponse)
async def submit_answer(request: AnswerRequest):
    outcome = orchestrator.submit_answer(request.answer)
    if outcome is None:
        raise HTTPException(status_code=409, detail="No answer expected right now")

    task = asyncio.create_task(send_encouragement(outcome.session_id, outcome.is_correct, outcome.points))
    background_tasks.add(task)
    task.add_done_callback(background_tasks.discard)

    return AnswerResponse(
        correct=outcome.is_correct,
        points=outcome.points,
        expected=outcome.expected,
        score=orchestrator.session.score,
        streak=outcome.streak,
        multiplier=outcome.multiplier,
        srs_level=outcome.record.level,
        next_review=outcome.record.next_review_at.isoformat(),
        feedback_delay_ms=FEEDBACK_DELAY_MS,
        unlocked=progress.pop_recent_unlocks()
    )


@app.post("/api/session/finish")
async def finish_session():
    """End an endless drill and record it."""
    if orchestrator.state != SessionState.ACTIVE or not orchestrator.session.is_endless:
        raise HTTPException(status_code=409, detail="Only an active endless session can be finished")
    result = orchestrator.finish()
    return {
        "result": result.to_dict() if result else None,
        "unlocked": progress.pop_recent_unlocks()
    }


@app.post("/api/session/exit", response_model=SessionSnapshot)
async def exit_session():
    orchestrator.exit()
    return orchestrator.snapshot()


# Progress views
@app.get("/api/srs/due")
async def get_due():
    due = progress.due_items()
    return {"count": len(due), "items": [record.to_dict() for record in due]}


@app.get("/api/insights")
async def get_insights():
    report = analyze_weaknesses(progress.history)
    weaknesses = report.to_dict()
    for entry in weaknesses['weak_groups']:
        entry['label'] = get_group_label(entry['group'])
    return {
        "weaknesses": weaknesses,
        "mastery": mastery_stats(progress.srs.table, progress.clock()),
        "summary": history_summary(progress.history)
    }


@app.get("/api/achievements")
async def get_achievements():
    return {
        "achievements": [a.to_dict(unlocked=a.id in progress.unlocked) for a in ACHIEVEMENTS],
        "unlocked_count": len(progress.unlocked),
        "new": progress.recent_unlocks
    }


@app.post("/api/achievements/seen")
async def acknowledge_achievements():
    """Clear the pending unlock notifications and return them."""
    return {"new": progress.pop_recent_unlocks()}


@app.get("/api/history")
async def get_history(limit: int = Query(50, ge=0)):
    return {"history": [r.to_dict() for r in progress.history[:limit]]}
