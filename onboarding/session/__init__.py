"""
Session Layer

Conversational onboarding state machine:
- SessionOrchestrator drives question -> answer -> persist -> advance
- Append-only EventLog of prompts, answers and deletions
- Per-input-kind answer validation
- Process-wide SessionRegistry

Version: session_layer_v1
"""

from .errors import (
    SessionError,
    AnswerValidationError,
    SessionBusyError,
    InvalidTransitionError,
    UnknownQuestionError,
    SessionClosedError,
)
from .models import (
    SessionState,
    EventKind,
    ConversationEvent,
    EventLog,
    TurnResult,
    RetryReport,
    SessionView,
)
from .validation import validate_answer
from .orchestrator import SessionOrchestrator, ALLOWED_TRANSITIONS
from .registry import SessionRegistry, build_profile_service

__all__ = [
    "SessionError",
    "AnswerValidationError",
    "SessionBusyError",
    "InvalidTransitionError",
    "UnknownQuestionError",
    "SessionClosedError",
    "SessionState",
    "EventKind",
    "ConversationEvent",
    "EventLog",
    "TurnResult",
    "RetryReport",
    "SessionView",
    "validate_answer",
    "SessionOrchestrator",
    "ALLOWED_TRANSITIONS",
    "SessionRegistry",
    "build_profile_service",
]

__version__ = "session_layer_v1"
