"""
Completion Evaluation

Completion is measured over ALL phases, not just the active one.

A profile is complete only when:
1. every required question is answered, AND
2. at least COMPLETION_RATIO (90%) of all questions are answered.

Required-only completion below the ratio is NOT complete.
"""

import math
from typing import AbstractSet, List, Optional
from pydantic import BaseModel, Field

from onboarding import config
from onboarding.catalog.catalog import QuestionCatalog


class PhaseProgress(BaseModel):
    """Answered/total breakdown for one phase."""
    phase_id: str
    name: str
    answered: int
    total: int
    required_answered: int
    required_total: int

    @property
    def is_done(self) -> bool:
        return self.answered >= self.total


class CompletionReport(BaseModel):
    """Full completion picture for a set of answered ids."""
    percentage: int = Field(ge=0, le=100)
    is_complete: bool
    answered_count: int
    total_count: int
    required_answered: int
    required_total: int
    phases: List[PhaseProgress] = Field(default_factory=list)


def round_half_up(value: float) -> int:
    """Round .5 upwards, unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


class CompletionEvaluator:
    def __init__(self, catalog: QuestionCatalog, ratio: Optional[float] = None):
        self.catalog = catalog
        self.ratio = config.COMPLETION_RATIO if ratio is None else ratio

    def answered_count(self, answered_ids: AbstractSet[str]) -> int:
        return sum(1 for q in self.catalog.all_questions() if q.id in answered_ids)

    def percentage(self, answered_ids: AbstractSet[str]) -> int:
        total = len(self.catalog)
        if total == 0:
            return 0
        return round_half_up(100 * self.answered_count(answered_ids) / total)

    def is_complete(self, answered_ids: AbstractSet[str]) -> bool:
        required = self.catalog.required_questions()
        if any(q.id not in answered_ids for q in required):
            return False
        return self.answered_count(answered_ids) >= len(self.catalog) * self.ratio

    def report(self, answered_ids: AbstractSet[str]) -> CompletionReport:
        phases = []
        for phase in self.catalog.phases:
            required = [q for q in phase.questions if q.required]
            phases.append(PhaseProgress(
                phase_id=phase.id,
                name=phase.name,
                answered=sum(1 for q in phase.questions if q.id in answered_ids),
                total=len(phase.questions),
                required_answered=sum(1 for q in required if q.id in answered_ids),
                required_total=len(required),
            ))

        required_all = self.catalog.required_questions()
        return CompletionReport(
            percentage=self.percentage(answered_ids),
            is_complete=self.is_complete(answered_ids),
            answered_count=self.answered_count(answered_ids),
            total_count=len(self.catalog),
            required_answered=sum(1 for q in required_all if q.id in answered_ids),
            required_total=len(required_all),
            phases=phases,
        )


def motivational_message(percentage: float) -> str:
    if percentage < 25:
        return "Great start! Every detail helps us find your perfect matches."
    if percentage < 50:
        return "You're doing amazing! Your profile is getting stronger."
    if percentage < 75:
        return "Fantastic progress! You're almost to premium matching."
    return "You're a profile superstar! Maximum matching power activated."
