"""FastAPI server for flashdrill."""

import logging
import os
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional

from drill.errors import (
    DrillError, EmptyCardPool, CardsCheckedOut, IllegalTransition, InvalidCard,
    InvalidEvaluationInput, InvalidProfile, InvalidSessionStart, InvalidSettings
)
from drill.models import Card, CardSettings, Meaning, Word
from drill.service import DrillService
from drill.session import Event, EventKind, SessionEngine

from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage

logger = logging.getLogger(__name__)


# Pydantic models for API
class SettingsRequest(BaseModel):
    cards_per_set: int
    test_answer_method: str
    streak_length: int


class MeaningRequest(BaseModel):
    definition: str
    translated_definition: str = ""
    word_translations: list[str] = []


class CardRequest(BaseModel):
    word: str
    readings: list[str] = []
    meanings: list[MeaningRequest]
    card_type: str = "straight"


class StartSessionRequest(BaseModel):
    profile: str
    mode: str = "learn"  # "learn" or "repeat"
    start_card_number: int = 1
    always_study: bool = True
    limit: Optional[int] = None  # repeat only: max cards in the run


class EventRequest(BaseModel):
    type: EventKind
    text: Optional[str] = None  # submit_answer only


class SessionResponse(BaseModel):
    session_id: str
    profile: str
    mode: str
    step: dict
    pending_changes: int
    persisted: bool = True
    persist_error: Optional[str] = None


# Global state (in production, use proper DI)
storage = None
service: DrillService = None

# Live sessions: session_id -> {profile, mode, engine, released}
sessions: dict[str, dict] = {}


def new_session_id() -> str:
    return str(uuid.uuid4())[:8]


def log_event(event: str, profile: str, session_id: str = None, **data) -> None:
    """Log an event to the database."""
    if storage and hasattr(storage, 'log_event'):
        storage.log_event(event, profile, session_id, **data)


def http_error(e: DrillError) -> HTTPException:
    """Map engine errors to HTTP status codes."""
    if isinstance(e, EmptyCardPool):
        status = 404
    elif isinstance(e, (CardsCheckedOut, IllegalTransition)):
        status = 409
    elif isinstance(e, (InvalidEvaluationInput, InvalidSettings, InvalidCard,
                        InvalidSessionStart, InvalidProfile)):
        status = 422
    else:
        status = 400
    return HTTPException(status_code=status, detail=str(e))


app = FastAPI(title="flashdrill API", description="Vocabulary flashcard drills")


@app.exception_handler(DrillError)
async def drill_error_handler(request: Request, exc: DrillError):
    """Map engine errors raised outside a route's own try block."""
    error = http_error(exc)
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.on_event("startup")
async def startup():
    """Initialize storage on startup."""
    global storage, service

    # Use file storage by default, set FLASHDRILL_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('FLASHDRILL_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage(os.environ.get('FLASHDRILL_STATE_DIR'))
        logger.info(f"Using file storage in {storage.state_dir}")
    service = DrillService(storage, storage)


def get_session(session_id: str) -> dict:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def flush_session(session_id: str) -> None:
    """Persist pending streaks and release the cards once the session is over."""
    session = sessions[session_id]
    engine: SessionEngine = session['engine']
    changes = service.flush(session['profile'], engine)
    if changes:
        log_event('streaks.persist', session['profile'], session_id, changes=changes)
    if engine.finished and not session['released']:
        service.release(session['profile'], engine)
        session['released'] = True
        log_event('session.complete', session['profile'], session_id, mode=session['mode'])
        logger.info(f"Session {session_id} for '{session['profile']}' complete")


def session_response(session_id: str, persist_error: str = None) -> SessionResponse:
    session = sessions[session_id]
    engine: SessionEngine = session['engine']
    return SessionResponse(
        session_id=session_id,
        profile=session['profile'],
        mode=session['mode'],
        step=engine.step().to_dict(),
        pending_changes=len(engine.pending_changes()),
        persisted=persist_error is None,
        persist_error=persist_error
    )


def final_response(session_id: str, persist_error: str = None) -> SessionResponse:
    """Build the response and forget the session once it is finished and released."""
    response = session_response(session_id, persist_error)
    if sessions[session_id]['released']:
        del sessions[session_id]
    return response


@app.get("/")
async def root():
    """Health check."""
    return {"service": "flashdrill", "status": "ok"}


@app.get("/api/profiles")
async def list_profiles():
    """List profiles known to storage."""
    return {"profiles": storage.list_profiles()}


@app.get("/api/profiles/{profile}/settings")
async def get_settings(profile: str):
    """Get card settings for a profile."""
    return storage.load(profile).to_dict()


@app.put("/api/profiles/{profile}/settings")
async def update_settings(profile: str, request: SettingsRequest):
    """Validate and save card settings for a profile."""
    try:
        settings = CardSettings(request.cards_per_set, request.test_answer_method, request.streak_length)
    except InvalidSettings as e:
        raise http_error(e)
    storage.save(profile, settings)
    return settings.to_dict()


@app.get("/api/profiles/{profile}/cards")
async def list_cards(profile: str):
    """List a profile's cards with their learned status."""
    settings = storage.load(profile)
    cards = storage.load_pool(profile)
    return {
        "total": len(cards),
        "learned": sum(1 for c in cards if c.is_learned(settings.streak_length)),
        "cards": [
            {**c.to_dict(), "is_learned": c.is_learned(settings.streak_length)}
            for c in cards
        ]
    }


@app.post("/api/profiles/{profile}/cards")
async def add_card(profile: str, request: CardRequest):
    """Add a new card to a profile."""
    try:
        card = Card(
            Word(request.word, request.readings),
            [Meaning(m.definition, m.translated_definition, m.word_translations) for m in request.meanings],
            card_type=request.card_type
        )
    except InvalidCard as e:
        raise http_error(e)
    existing = {c.word_name for c in storage.load_pool(profile)}
    if card.word_name in existing:
        raise HTTPException(status_code=409, detail=f"Card '{card.word_name}' already exists")
    storage.save_cards(profile, [card])
    log_event('card.create', profile, word_name=card.word_name)
    return card.to_dict()


@app.get("/api/profiles/{profile}/cards/{word_name}")
async def get_card(profile: str, word_name: str):
    """Get one card by its word."""
    settings = storage.load(profile)
    for card in storage.load_pool(profile):
        if card.word_name == word_name:
            return {**card.to_dict(), "is_learned": card.is_learned(settings.streak_length)}
    raise HTTPException(status_code=404, detail=f"Card '{word_name}' not found")


@app.delete("/api/profiles/{profile}/cards/{word_name}")
async def delete_card(profile: str, word_name: str):
    """Delete a card that no live session is using."""
    if word_name in service.checked_out(profile):
        raise HTTPException(status_code=409, detail=f"Card '{word_name}' is in use by a live session")
    if not storage.delete_card(profile, word_name):
        raise HTTPException(status_code=404, detail=f"Card '{word_name}' not found")
    log_event('card.delete', profile, word_name=word_name)
    return {"success": True}


@app.post("/api/sessions", response_model=SessionResponse)
async def start_session(request: StartSessionRequest):
    """Start a learning or repeat session."""
    try:
        if request.mode == "learn":
            engine = service.start_learning(request.profile, request.start_card_number, request.always_study)
        elif request.mode == "repeat":
            engine = service.start_repeat(request.profile, request.limit)
        else:
            raise HTTPException(status_code=422, detail=f"Unknown mode: {request.mode}")
        engine.start_session()
    except DrillError as e:
        raise http_error(e)

    session_id = new_session_id()
    sessions[session_id] = {
        'profile': request.profile,
        'mode': request.mode,
        'engine': engine,
        'released': False
    }
    log_event('session.start', request.profile, session_id, mode=request.mode, cards=len(engine.pool))
    return session_response(session_id)


@app.get("/api/sessions/{session_id}", response_model=SessionResponse)
async def get_session_state(session_id: str):
    """Get the current step of a session."""
    get_session(session_id)
    return session_response(session_id)


@app.post("/api/sessions/{session_id}/events", response_model=SessionResponse)
async def send_event(session_id: str, request: EventRequest):
    """Apply one event to a session."""
    session = get_session(session_id)
    engine: SessionEngine = session['engine']
    try:
        step = engine.handle(Event(request.type, request.text))
    except DrillError as e:
        raise http_error(e)

    persist_error = None
    if step.outcome is not None or step.finished:
        try:
            flush_session(session_id)
        except Exception as e:
            logger.error(f"Error persisting session {session_id}: {type(e).__name__}: {e}")
            persist_error = f"{type(e).__name__}: {e}"
    return final_response(session_id, persist_error)


@app.post("/api/sessions/{session_id}/flush", response_model=SessionResponse)
async def flush(session_id: str):
    """Retry persisting a session's pending streak changes."""
    get_session(session_id)
    try:
        flush_session(session_id)
    except Exception as e:
        logger.error(f"Error persisting session {session_id}: {type(e).__name__}: {e}")
        raise HTTPException(status_code=503, detail=f"Storage error: {type(e).__name__}: {e}")
    return final_response(session_id)


@app.delete("/api/sessions/{session_id}")
async def abandon_session(session_id: str):
    """Drop a session. Unsaved streak changes are lost."""
    session = sessions.pop(session_id, None)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    engine: SessionEngine = session['engine']
    discarded = len(engine.pending_changes())
    if not session['released']:
        service.release(session['profile'], engine)
        log_event('session.abandon', session['profile'], session_id, discarded_changes=discarded)
    return {"success": True, "discarded_changes": discarded}


@app.get("/api/events/recent")
async def get_recent_events(profile: str, event_type: str = None, limit: int = 50):
    """Get recent events for a profile."""
    if not hasattr(storage, 'get_profile_events'):
        return {"error": "Event logging not available with current storage"}

    events = storage.get_profile_events(profile, event_type, limit)
    # Convert datetime objects to strings for JSON serialization
    for event in events:
        if 'timestamp' in event and hasattr(event['timestamp'], 'isoformat'):
            event['timestamp'] = event['timestamp'].isoformat()
    return {"events": events}


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
