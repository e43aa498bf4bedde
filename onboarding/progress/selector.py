"""
Next-question selection.

Deterministic: always the lowest-index unanswered question of the
effective (registration-filtered) catalog. Answered ids that the catalog
no longer declares are simply ignored.
"""

from typing import AbstractSet, Iterable, List, Optional

from onboarding.catalog.catalog import ExclusionPolicy, QuestionCatalog
from onboarding.catalog.models import Question


class QuestionSelector:
    def __init__(self, catalog: QuestionCatalog, exclusions: Optional[ExclusionPolicy] = None):
        self.catalog = catalog
        self.exclusions = exclusions or ExclusionPolicy(catalog)

    def effective_questions(self) -> List[Question]:
        return self.exclusions.effective_questions()

    def next_question(
        self,
        answered_ids: AbstractSet[str],
        skipped_ids: Iterable[str] = (),
    ) -> Optional[Question]:
        """
        First effective question not in `answered_ids`.

        `skipped_ids` are session-local skips; they are passed over but
        never treated as answered.
        """
        skipped = set(skipped_ids)
        for question in self.effective_questions():
            if question.id in answered_ids or question.id in skipped:
                continue
            return question
        return None

    def unanswered(self, answered_ids: AbstractSet[str]) -> List[Question]:
        return [q for q in self.effective_questions() if q.id not in answered_ids]
