"""
Onboarding HTTP API
===================
Thin presentation adapter over the session layer. Every action returns
the events it produced so a client can render the conversation.

Endpoints:
- GET    /api/v1/onboarding/catalog
- POST   /api/v1/onboarding/sessions
- GET    /api/v1/onboarding/sessions/{user_id}
- POST   /api/v1/onboarding/sessions/{user_id}/answers
- PUT    /api/v1/onboarding/sessions/{user_id}/answers/{question_id}
- DELETE /api/v1/onboarding/sessions/{user_id}/answers/{question_id}
- POST   /api/v1/onboarding/sessions/{user_id}/skip
- POST   /api/v1/onboarding/sessions/{user_id}/retry
- POST   /api/v1/onboarding/sessions/{user_id}/abandon
- GET    /api/v1/onboarding/health
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from onboarding.catalog.catalog import ExclusionPolicy
from onboarding.progress.models import AnswerValue
from onboarding.session.errors import (
    AnswerValidationError,
    InvalidTransitionError,
    SessionBusyError,
    SessionClosedError,
    UnknownQuestionError,
)
from onboarding.session.models import RetryReport, SessionState, SessionView, TurnResult
from onboarding.session.orchestrator import SessionOrchestrator
from onboarding.session.registry import SessionRegistry
from onboarding.shared.context import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/onboarding", tags=["Onboarding"])

API_VERSION = "onboarding_api_v1"

_registry: Optional[SessionRegistry] = None


def get_registry() -> SessionRegistry:
    """Process-wide registry, built from environment settings on first use."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry.from_config()
    return _registry


# ============================================
# Request / Response Models
# ============================================

class AnswerRequest(BaseModel):
    question_id: str
    answer: AnswerValue


class EditAnswerRequest(BaseModel):
    answer: AnswerValue


class SessionStartResponse(BaseModel):
    resumed: bool
    session: SessionView
    turn: Optional[TurnResult] = None


# ============================================
# Helpers
# ============================================

def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Authorization header must be 'Bearer <token>'")
    return token.strip()


@contextmanager
def session_errors():
    """Map orchestrator errors to HTTP status codes."""
    try:
        yield
    except AnswerValidationError as e:
        raise HTTPException(status_code=422, detail={"question_id": e.question_id, "message": e.message})
    except UnknownQuestionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SessionClosedError as e:
        raise HTTPException(status_code=410, detail=str(e))
    except (SessionBusyError, InvalidTransitionError) as e:
        logger.info(f"Rejected onboarding action: {e}")
        raise HTTPException(status_code=409, detail=str(e))


def load_session(
    user_id: str,
    registry: SessionRegistry,
    x_user_id: Optional[str],
) -> SessionOrchestrator:
    if x_user_id is not None and x_user_id != user_id:
        raise HTTPException(status_code=403, detail="X-User-Id does not match the session")
    orchestrator = registry.get(user_id)
    if orchestrator is None:
        raise HTTPException(status_code=404, detail=f"No onboarding session for {user_id}")
    return orchestrator


# ============================================
# Catalog
# ============================================

@router.get("/catalog")
def get_catalog(registry: SessionRegistry = Depends(get_registry)) -> Dict[str, Any]:
    """Phases, questions and reward tiers."""
    catalog = registry.store.catalog
    exclusions = ExclusionPolicy(catalog)
    return {
        "phases": [phase.model_dump(mode="json") for phase in catalog.phases],
        "tiers": [tier.model_dump(mode="json") for tier in registry.rewards.tiers],
        "question_count": len(catalog),
        "total_points": catalog.total_points(),
        "excluded_question_ids": sorted(exclusions.excluded_in_catalog()),
    }


# ============================================
# Sessions
# ============================================

@router.post("/sessions", response_model=SessionStartResponse)
def start_session(
    x_user_id: str = Header(..., alias="X-User-Id"),
    authorization: Optional[str] = Header(None),
    x_display_name: Optional[str] = Header(None, alias="X-Display-Name"),
    registry: SessionRegistry = Depends(get_registry),
):
    """Start a new session for the caller, or return the live one."""
    context = SessionContext(
        user_id=x_user_id,
        access_token=bearer_token(authorization),
        display_name=x_display_name or None,
    )
    orchestrator = registry.open(context)

    if orchestrator.state != SessionState.INITIALIZING:
        return SessionStartResponse(resumed=True, session=orchestrator.view())

    with session_errors():
        try:
            turn = orchestrator.start()
        except InvalidTransitionError:
            # A concurrent request started it first
            return SessionStartResponse(resumed=True, session=orchestrator.view())
    return SessionStartResponse(resumed=False, session=orchestrator.view(), turn=turn)


@router.get("/sessions/{user_id}", response_model=SessionView)
def get_session(
    user_id: str,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    registry: SessionRegistry = Depends(get_registry),
):
    return load_session(user_id, registry, x_user_id).view()


@router.post("/sessions/{user_id}/answers", response_model=TurnResult)
def submit_answer(
    user_id: str,
    request: AnswerRequest,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Answer the current question. A rejected answer is not an HTTP error:
    the turn comes back with accepted=false and a re-prompt.
    """
    orchestrator = load_session(user_id, registry, x_user_id)
    with session_errors():
        return orchestrator.submit_answer(request.question_id, request.answer)


@router.put("/sessions/{user_id}/answers/{question_id}", response_model=TurnResult)
def edit_answer(
    user_id: str,
    question_id: str,
    request: EditAnswerRequest,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    registry: SessionRegistry = Depends(get_registry),
):
    orchestrator = load_session(user_id, registry, x_user_id)
    with session_errors():
        return orchestrator.edit_answer(question_id, request.answer)


@router.delete("/sessions/{user_id}/answers/{question_id}", response_model=TurnResult)
def delete_answer(
    user_id: str,
    question_id: str,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    registry: SessionRegistry = Depends(get_registry),
):
    orchestrator = load_session(user_id, registry, x_user_id)
    with session_errors():
        return orchestrator.delete_answer(question_id)


@router.post("/sessions/{user_id}/skip", response_model=TurnResult)
def skip_question(
    user_id: str,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    registry: SessionRegistry = Depends(get_registry),
):
    orchestrator = load_session(user_id, registry, x_user_id)
    with session_errors():
        return orchestrator.skip_question()


@router.post("/sessions/{user_id}/retry", response_model=RetryReport)
def retry_pending(
    user_id: str,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    registry: SessionRegistry = Depends(get_registry),
):
    """Flush queued answer saves and retry a deferred finalize."""
    orchestrator = load_session(user_id, registry, x_user_id)
    with session_errors():
        return orchestrator.retry_pending()


@router.post("/sessions/{user_id}/abandon")
def abandon_session(
    user_id: str,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    registry: SessionRegistry = Depends(get_registry),
):
    orchestrator = load_session(user_id, registry, x_user_id)
    with session_errors():
        orchestrator.abandon()
    return {"user_id": user_id, "abandoned": True, "state": orchestrator.state.value}


# ============================================
# Health
# ============================================

@router.get("/health")
def onboarding_health(registry: SessionRegistry = Depends(get_registry)):
    return {
        "status": "ok",
        "version": API_VERSION,
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "active_sessions": len(registry),
        "profile_service_configured": bool(getattr(registry.store.service, "is_configured", False)),
        "local_cache_enabled": registry.store.cache is not None,
    }
