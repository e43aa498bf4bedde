"""
Question Catalog Models

Pydantic models for phases, questions and reward tiers.

Questions and phases are immutable once declared; ids are stable across
catalog versions because saved progress refers to them.

Version: question_catalog_v1
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class InputKind(str, Enum):
    """How a question is answered."""
    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT_CARDS = "multi_select_cards"
    IMAGE = "image"
    MULTI_IMAGE = "multi_image"
    DATE = "date"
    FREE_FORM_STORY = "free_form_story"


TEXT_KINDS = frozenset([
    InputKind.SHORT_TEXT,
    InputKind.LONG_TEXT,
    InputKind.FREE_FORM_STORY,
])

DEFAULT_MAX_IMAGES = 5


class ChoiceCard(BaseModel):
    """A selectable card for multi-select-card questions."""
    id: str
    label: str
    icon: Optional[str] = None

    class Config:
        frozen = True


class DateRange(BaseModel):
    """Inclusive ISO date bounds for date questions."""
    min: str = Field(description="Earliest allowed date, YYYY-MM-DD")
    max: str = Field(description="Latest allowed date, YYYY-MM-DD")

    class Config:
        frozen = True


class Question(BaseModel):
    """
    A single catalog question.

    `dependencies` is advisory metadata: selection does not enforce it.
    """
    id: str
    prompt: str
    placeholder: str = ""
    input_kind: InputKind
    phase_id: str
    category: str
    points: int = Field(default=5, ge=0)
    required: bool = False
    options: List[str] = Field(default_factory=list)
    cards: List[ChoiceCard] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    max_images: Optional[int] = Field(default=None, ge=1)
    date_range: Optional[DateRange] = None

    class Config:
        frozen = True
        extra = "forbid"

    @property
    def image_limit(self) -> int:
        return self.max_images or DEFAULT_MAX_IMAGES


class Phase(BaseModel):
    """An ordered group of questions unlocked at a point threshold."""
    id: str
    name: str
    description: str = ""
    estimated_time: str = ""
    required_points: int = Field(default=0, ge=0)
    benefits: List[str] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"

    @property
    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]


class RewardTier(BaseModel):
    """A named reward level unlocked at `points_threshold`."""
    points_threshold: int = Field(ge=0)
    reward_name: str
    benefits: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"
