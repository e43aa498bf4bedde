"""
Progress Layer

Resumable per-user answer state:
- Tagged answer values and their wire format
- Local-first ProgressStore with a retry outbox and device cache
- Next-question selection and resume point resolution

Version: progress_layer_v1
"""

from .models import (
    AnswerValue,
    TextAnswer,
    ListAnswer,
    DateAnswer,
    MediaAnswer,
    ProgressState,
    PendingWrite,
    answer_adapter,
)
from .answers import AnswerDecodeError, answer_from_wire, answer_to_wire, display_text
from .selector import QuestionSelector
from .resume import ResumeResolver, ResumePoint, COMPLETED_PHASE_ID
from .local_cache import LocalProgressCache
from .outbox import AnswerOutbox
from .store import ProgressStore, SaveOutcome

__all__ = [
    "AnswerValue",
    "TextAnswer",
    "ListAnswer",
    "DateAnswer",
    "MediaAnswer",
    "ProgressState",
    "PendingWrite",
    "answer_adapter",
    "AnswerDecodeError",
    "answer_from_wire",
    "answer_to_wire",
    "display_text",
    "QuestionSelector",
    "ResumeResolver",
    "ResumePoint",
    "COMPLETED_PHASE_ID",
    "LocalProgressCache",
    "AnswerOutbox",
    "ProgressStore",
    "SaveOutcome",
]

__version__ = "progress_layer_v1"
