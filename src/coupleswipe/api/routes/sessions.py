"""Session routes: create a session, send intents, fetch what the screens show."""

from enum import Enum

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from coupleswipe.models.preferences import Preferences
from coupleswipe.models.session import DecisionKind
from coupleswipe.session.coordinator import SwipeSession

from ..auth import verify_client_token

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", dependencies=[Depends(verify_client_token)])


class IntentType(str, Enum):
    SUBMIT_NAMES = "submit_names"
    START_PICKING = "start_picking"
    ACT = "act"
    UNDO = "undo"
    SWAP = "swap"
    START_REVIEW = "start_review"
    REVIEW = "review"
    REVIEW_SWAP = "review_swap"
    REDEAL = "redeal"
    START_OVER = "start_over"
    PICK_WINNER = "pick_winner"
    BACK_TO_FINAL = "back_to_final"
    RESTART = "restart"
    UPDATE_PREFERENCES = "update_preferences"
    SET_TOKEN = "set_token"
    CLEAR_NAMES = "clear_names"
    RETRY = "retry"


class IntentRequest(BaseModel):
    """One user intent. Only the fields its type needs are read."""

    type: IntentType
    you: str | None = None
    partner: str | None = None
    kind: DecisionKind | None = None
    approve: bool | None = None
    widen: bool = True
    preferences: Preferences | None = None
    rebuild: bool = False
    api_token: str | None = None


def _session(request: Request, session_id: str) -> SwipeSession:
    return request.app.state.registry.get(session_id)


def _require(value, field: str):
    if value is None:
        raise HTTPException(status_code=422, detail=f"'{field}' is required for this intent")
    return value


async def _apply(session: SwipeSession, intent: IntentRequest) -> None:
    t = intent.type
    if t is IntentType.SUBMIT_NAMES:
        await session.submit_names(_require(intent.you, "you"), _require(intent.partner, "partner"))
    elif t is IntentType.START_PICKING:
        await session.start_picking()
    elif t is IntentType.ACT:
        await session.act(_require(intent.kind, "kind"))
    elif t is IntentType.UNDO:
        await session.undo()
    elif t is IntentType.SWAP:
        await session.swap()
    elif t is IntentType.START_REVIEW:
        await session.start_review()
    elif t is IntentType.REVIEW:
        await session.review(_require(intent.approve, "approve"))
    elif t is IntentType.REVIEW_SWAP:
        await session.review_swap()
    elif t is IntentType.REDEAL:
        await session.redeal(widen=intent.widen)
    elif t is IntentType.START_OVER:
        await session.start_over()
    elif t is IntentType.PICK_WINNER:
        await session.pick_winner()
    elif t is IntentType.BACK_TO_FINAL:
        await session.back_to_final()
    elif t is IntentType.RESTART:
        await session.restart()
    elif t is IntentType.UPDATE_PREFERENCES:
        await session.update_preferences(
            _require(intent.preferences, "preferences"), rebuild=intent.rebuild
        )
    elif t is IntentType.SET_TOKEN:
        session.set_api_token(_require(intent.api_token, "api_token"))
    elif t is IntentType.CLEAR_NAMES:
        session.clear_names()
    elif t is IntentType.RETRY:
        await session.retry()


@router.post("")
async def create_session(request: Request):
    session = request.app.state.registry.create()
    return session.snapshot()


@router.get("/{session_id}")
async def get_session(session_id: str, request: Request):
    return _session(request, session_id).snapshot()


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, request: Request):
    request.app.state.registry.discard(session_id)


@router.post("/{session_id}/intents")
async def post_intent(session_id: str, intent: IntentRequest, request: Request):
    session = _session(request, session_id)
    log = logger.bind(session_id=session_id, intent=intent.type.value)
    log.info("intent.received", phase=session.state.phase.value)
    await _apply(session, intent)
    log.info("intent.applied", phase=session.state.phase.value)
    return session.snapshot()


@router.get("/{session_id}/review-card")
async def get_review_card(session_id: str, request: Request):
    card = await _session(request, session_id).review_card()
    return {"card": card.to_dict() if card else None}


@router.get("/{session_id}/shortlist")
async def get_shortlist(session_id: str, request: Request):
    cards = await _session(request, session_id).shortlist()
    return {"items": [c.to_dict() for c in cards]}


@router.get("/{session_id}/trailer/{candidate_id}")
async def get_trailer(session_id: str, candidate_id: int, request: Request):
    card = await _session(request, session_id).trailer(candidate_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Title is not part of this deal")
    return card.to_dict()


@router.get("/{session_id}/winner")
async def get_winner(session_id: str, request: Request):
    card = await _session(request, session_id).winner_detail()
    return {"card": card.to_dict() if card else None}


@router.get("/{session_id}/genres")
async def get_genres(session_id: str, request: Request):
    genres = await _session(request, session_id).genres()
    return {"genres": [g.model_dump() for g in genres]}
