"""
Session Models

State machine states, the append-only conversation event log, and the
views handed back to the presentation layer.
"""

from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional, Tuple
from pydantic import BaseModel, Field

from onboarding.catalog.models import Question


class SessionState(str, Enum):
    INITIALIZING = "initializing"
    GREETING = "greeting"
    AWAITING_ANSWER = "awaiting_answer"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    ADVANCING = "advancing"
    COMPLETED = "completed"
    FINALIZING = "finalizing"


class EventKind(str, Enum):
    SYSTEM_PROMPT = "system_prompt"
    USER_ANSWER = "user_answer"
    ANSWER_DELETED = "answer_deleted"


class ConversationEvent(BaseModel):
    """One entry in the conversation, independent of how it is rendered."""
    sequence: int = Field(ge=0)
    kind: EventKind
    text: str
    question_id: Optional[str] = None
    edited: bool = False
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    class Config:
        frozen = True


class EventLog:
    """Append-only ordered sequence of conversation events."""

    def __init__(self):
        self._events: List[ConversationEvent] = []

    def append(
        self,
        kind: EventKind,
        text: str,
        question_id: Optional[str] = None,
        edited: bool = False,
    ) -> ConversationEvent:
        event = ConversationEvent(
            sequence=len(self._events),
            kind=kind,
            text=text,
            question_id=question_id,
            edited=edited,
        )
        self._events.append(event)
        return event

    def since(self, sequence: int) -> List[ConversationEvent]:
        return self._events[sequence:]

    @property
    def events(self) -> Tuple[ConversationEvent, ...]:
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[ConversationEvent]:
        return iter(tuple(self._events))


class TurnResult(BaseModel):
    """Outcome of one presentation-layer action."""
    state: SessionState
    accepted: bool = True
    events: List[ConversationEvent] = Field(default_factory=list)
    current_question_id: Optional[str] = None
    error: Optional[str] = None
    saved_remotely: Optional[bool] = None


class RetryReport(BaseModel):
    flushed_answers: int = 0
    pending_answers: int = 0
    finalize_attempted: bool = False
    finalized: bool = False


class SessionView(BaseModel):
    """Everything a presentation layer needs to render the session."""
    user_id: str
    state: SessionState
    closed: bool = False
    current_question: Optional[Question] = None
    current_phase_id: Optional[str] = None
    percentage: int = 0
    is_complete: bool = False
    total_points: int = 0
    tier: Optional[str] = None
    next_tier: Optional[str] = None
    points_to_next_tier: Optional[int] = None
    motivational_message: Optional[str] = None
    pending_writes: int = 0
    finalized: bool = False
    finalize_pending: bool = False
    events: List[ConversationEvent] = Field(default_factory=list)
