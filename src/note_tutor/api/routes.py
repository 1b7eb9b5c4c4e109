"""REST API routes for the practice loop."""

import functools

import structlog
from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, Field

from note_tutor.config import get_settings
from note_tutor.engine.catalog import build_candidates
from note_tutor.errors import ConfigurationNotFound, EmptyCandidatePool, NoActiveQuestion
from note_tutor.models.note import MusicalNote
from note_tutor.models.performance import NotePerformance
from note_tutor.models.progress import PracticeFilters
from note_tutor.tutor.answers import AnswerFeedback
from note_tutor.tutor.session import (
    AnswerResult,
    PracticeSession,
    PracticeSummary,
    build_practice_session,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class AnswerRequest(BaseModel):
    answer: str = Field(max_length=8)
    response_time_ms: float | None = None


class ImportRequest(BaseModel):
    data: str


@functools.lru_cache(maxsize=1)
def get_practice_session() -> PracticeSession:
    """Process-wide practice session built from settings."""
    return build_practice_session(get_settings())


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/levels")
async def list_levels() -> list[dict]:
    """Configured levels in progression order."""
    levels = get_practice_session().generator.levels
    result = []
    for level in levels.levels:
        config = levels.get(level)
        result.append({
            "level": level.value,
            "progression_criteria": config.progression_criteria.model_dump(),
            "clef_distribution": config.clef_distribution.model_dump(),
            "note_count": len(build_candidates(config)),
        })
    return result


@router.post("/notes/next")
async def next_note() -> MusicalNote:
    """Select and return the next note to identify."""
    session = get_practice_session()
    try:
        return session.next_note()
    except EmptyCandidatePool as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConfigurationNotFound as e:
        logger.error("level_configuration_missing", level=e.level)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/answers")
async def submit_answer(request: AnswerRequest) -> AnswerResult:
    """Check and record an answer to the current note."""
    session = get_practice_session()
    try:
        return session.submit_answer(request.answer, request.response_time_ms)
    except NoActiveQuestion as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/answers/reveal")
async def reveal_answer() -> AnswerFeedback:
    try:
        return get_practice_session().reveal_answer()
    except NoActiveQuestion as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/progress")
async def get_progress() -> PracticeSummary:
    return get_practice_session().summary()


@router.get("/performance")
async def get_performance() -> list[NotePerformance]:
    """Per-note statistics, hardest first."""
    stats = get_practice_session().generator.performance_stats()
    return sorted(stats.values(), key=lambda record: record.difficulty_score, reverse=True)


@router.put("/filters")
async def update_filters(filters: PracticeFilters) -> PracticeFilters:
    session = get_practice_session()
    session.set_filters(filters)
    return session.generator.filters


@router.post("/reset")
async def reset_progress() -> dict:
    get_practice_session().reset()
    return {"status": "reset"}


@router.get("/progress/export")
async def export_progress() -> Response:
    data = get_practice_session().progress.export_progress()
    return Response(content=data, media_type="application/json")


@router.post("/progress/import")
async def import_progress(request: ImportRequest) -> dict:
    if not get_practice_session().progress.import_progress(request.data):
        raise HTTPException(status_code=400, detail="Invalid progress data")
    return {"status": "imported"}
