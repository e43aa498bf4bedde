"""
Progressive Profile Service Models

Pydantic views of the remote service's responses. Field aliases accept
both the snake_case status payload and the camelCase answers payload.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class RemoteProgress(BaseModel):
    """Saved answers as reported by GetProgress."""
    answers: Dict[str, Any] = Field(default_factory=dict)
    answered_question_ids: List[str] = Field(default_factory=list)
    total_points: Optional[int] = Field(default=None, ge=0)
    current_phase: Optional[str] = None
    completed: bool = False

    class Config:
        extra = "ignore"

    @classmethod
    def from_status(cls, data: Dict[str, Any]) -> "RemoteProgress":
        """Parse `GET /progressive/status` data (profile object)."""
        profile = data.get("profile") or {}
        answers = profile.get("answers") or {}
        answered = profile.get("answered_questions")
        return cls(
            answers=answers,
            answered_question_ids=list(answered) if answered is not None else list(answers.keys()),
            total_points=profile.get("total_points"),
            current_phase=profile.get("current_phase"),
            completed=bool(profile.get("completed", False)),
        )

    @classmethod
    def from_answers(cls, data: Dict[str, Any]) -> "RemoteProgress":
        """Parse `GET /progressive/answers` data."""
        answers = data.get("answers") or {}
        answered = data.get("answeredQuestions")
        return cls(
            answers=answers,
            answered_question_ids=list(answered) if answered is not None else list(answers.keys()),
            total_points=data.get("totalPoints"),
            current_phase=data.get("currentPhase"),
        )


class SaveAck(BaseModel):
    """Acknowledgement for SaveAnswer / SaveBatch / CompletePhase."""
    accepted: bool
    points_earned: Optional[int] = None
    message: Optional[str] = None


class FinalizeResponse(BaseModel):
    """Result of the Finalize handoff."""
    success: bool
    profile: Dict[str, Any] = Field(default_factory=dict)
    user: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None
