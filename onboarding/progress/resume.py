"""
Resume point resolution for returning sessions.

Phases are scanned in declared order; the first unanswered question found
is the resume point. When everything is answered the sentinel phase
"completed" is returned.
"""

from dataclasses import dataclass
from typing import AbstractSet

from onboarding.catalog.catalog import QuestionCatalog

COMPLETED_PHASE_ID = "completed"


@dataclass(frozen=True)
class ResumePoint:
    has_progress: bool
    phase_id: str
    question_index_within_phase: int

    @property
    def is_completed(self) -> bool:
        return self.phase_id == COMPLETED_PHASE_ID


class ResumeResolver:
    def __init__(self, catalog: QuestionCatalog):
        self.catalog = catalog

    def resolve(self, answered_ids: AbstractSet[str]) -> ResumePoint:
        if not answered_ids:
            return ResumePoint(
                has_progress=False,
                phase_id=self.catalog.phases[0].id,
                question_index_within_phase=0,
            )

        for phase in self.catalog.phases:
            for index, question in enumerate(phase.questions):
                if question.id not in answered_ids:
                    return ResumePoint(
                        has_progress=True,
                        phase_id=phase.id,
                        question_index_within_phase=index,
                    )

        return ResumePoint(
            has_progress=True,
            phase_id=COMPLETED_PHASE_ID,
            question_index_within_phase=0,
        )
