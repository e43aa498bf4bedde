"""
Progress Models

Tagged answer values, the per-user resumable ProgressState, and the
pending-write records kept by the outbox.

AnswerValue is a discriminated union on `kind`; there is no implicit
coercion between variants.
"""

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Set, Union
from pydantic import BaseModel, Field, TypeAdapter, field_validator

from onboarding.catalog.models import Question


class TextAnswer(BaseModel):
    """Short text, long text, single-select choice or story."""
    kind: Literal["text"] = "text"
    text: str

    class Config:
        frozen = True


class ListAnswer(BaseModel):
    """Multi-select card ids or multiple media references."""
    kind: Literal["list"] = "list"
    items: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class DateAnswer(BaseModel):
    """ISO calendar date (YYYY-MM-DD)."""
    kind: Literal["date"] = "date"
    value: str

    class Config:
        frozen = True

    @field_validator("value")
    @classmethod
    def validate_iso_date(cls, v: str) -> str:
        # Stored as YYYY-MM-DD even when the parser accepts other ISO forms
        return date.fromisoformat(v).isoformat()

    def as_date(self) -> date:
        return date.fromisoformat(self.value)


class MediaAnswer(BaseModel):
    """Opaque reference to an uploaded image or other media."""
    kind: Literal["media"] = "media"
    reference: str

    class Config:
        frozen = True


AnswerValue = Annotated[
    Union[TextAnswer, ListAnswer, DateAnswer, MediaAnswer],
    Field(discriminator="kind"),
]

answer_adapter = TypeAdapter(AnswerValue)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds")


class ProgressState(BaseModel):
    """
    Resumable onboarding state for one user.

    Mutated only through ProgressStore. `total_points` tracks the sum of
    points of answered questions unless the remote service supplied its
    own total (`points_overridden`).
    """
    user_id: str
    answers: Dict[str, AnswerValue] = Field(default_factory=dict)
    answered_question_ids: Set[str] = Field(default_factory=set)
    total_points: int = Field(default=0, ge=0)
    points_overridden: bool = False
    current_phase_id: Optional[str] = None
    completed: bool = False
    completed_at: Optional[str] = None
    finalized: bool = False
    updated_at: str = Field(default_factory=_utcnow)

    def has_answer(self, question_id: str) -> bool:
        return question_id in self.answered_question_ids

    def apply_answer(self, question: Question, value: AnswerValue) -> bool:
        """
        Record an answer. Returns True when the question was not answered before.
        Re-answering replaces the value without awarding points twice.
        """
        is_new = question.id not in self.answered_question_ids
        self.answers[question.id] = value
        self.answered_question_ids.add(question.id)
        if is_new:
            self.total_points += question.points
        self.updated_at = _utcnow()
        return is_new

    def remove_answer(self, question_id: str, points: int = 0) -> bool:
        """Clear an answer and its id. Returns False when nothing was answered."""
        if question_id not in self.answered_question_ids and question_id not in self.answers:
            return False
        was_answered = question_id in self.answered_question_ids
        self.answered_question_ids.discard(question_id)
        self.answers.pop(question_id, None)
        if was_answered:
            self.total_points = max(0, self.total_points - points)
        self.completed = False
        self.completed_at = None
        self.updated_at = _utcnow()
        return True

    def mark_completed(self) -> None:
        if not self.completed:
            self.completed = True
            self.completed_at = _utcnow()
        self.updated_at = _utcnow()


class PendingWrite(BaseModel):
    """One unconfirmed answer save waiting in the outbox."""
    question_id: str
    answer: Any = Field(description="Wire value (string or list of strings)")
    points: int = 0
    idempotency_key: str
    attempts: int = 0
    last_error: Optional[str] = None
    enqueued_at: str = Field(default_factory=_utcnow)
