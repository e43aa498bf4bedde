"""
Question Catalog and Exclusion Policy

QuestionCatalog is a pure, immutable registry of phases and questions.
ExclusionPolicy removes questions whose data was already captured at
account registration.

Version: question_catalog_v1
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .models import Phase, Question, RewardTier
from .data import QUESTION_PHASES, REGISTRATION_QUESTION_IDS


class CatalogError(ValueError):
    """Raised when a catalog or tier list breaks its consistency rules."""
    pass


def validate_phases(phases: Iterable[Phase]) -> None:
    """
    Check catalog consistency rules.

    - question ids are globally unique
    - every question declares the phase it sits in
    - phase thresholds are non-decreasing in declared order
    """
    seen: Dict[str, str] = {}
    last_threshold = -1
    phase_ids = set()

    for phase in phases:
        if phase.id in phase_ids:
            raise CatalogError(f"Duplicate phase id: {phase.id}")
        phase_ids.add(phase.id)

        if phase.required_points < last_threshold:
            raise CatalogError(
                f"Phase '{phase.id}' requires {phase.required_points} points, "
                f"less than the previous phase ({last_threshold})"
            )
        last_threshold = phase.required_points

        for question in phase.questions:
            if question.id in seen:
                raise CatalogError(
                    f"Duplicate question id: {question.id} "
                    f"(phases '{seen[question.id]}' and '{phase.id}')"
                )
            if question.phase_id != phase.id:
                raise CatalogError(
                    f"Question '{question.id}' declares phase '{question.phase_id}' "
                    f"but is listed under '{phase.id}'"
                )
            seen[question.id] = phase.id


def validate_tiers(tiers: Iterable[RewardTier]) -> None:
    """Tier thresholds must be strictly increasing."""
    previous = None
    count = 0
    for tier in tiers:
        if previous is not None and tier.points_threshold <= previous:
            raise CatalogError(
                f"Tier '{tier.reward_name}' threshold {tier.points_threshold} "
                f"is not greater than {previous}"
            )
        previous = tier.points_threshold
        count += 1
    if count == 0:
        raise CatalogError("At least one reward tier is required")


class QuestionCatalog:
    """
    Static, ordered registry of phases and questions.

    `all_questions()` preserves phase order, then declaration order
    within each phase.
    """

    def __init__(self, phases: Optional[List[Phase]] = None):
        phases = list(QUESTION_PHASES if phases is None else phases)
        validate_phases(phases)
        self._phases: Tuple[Phase, ...] = tuple(phases)
        self._questions: Tuple[Question, ...] = tuple(
            question for phase in self._phases for question in phase.questions
        )
        self._by_id: Dict[str, Question] = {q.id: q for q in self._questions}
        self._phase_by_id: Dict[str, Phase] = {p.id: p for p in self._phases}

    @property
    def phases(self) -> Tuple[Phase, ...]:
        return self._phases

    def all_questions(self) -> Tuple[Question, ...]:
        return self._questions

    def question_ids(self) -> List[str]:
        return [q.id for q in self._questions]

    def question(self, question_id: str) -> Optional[Question]:
        return self._by_id.get(question_id)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._by_id

    def __len__(self) -> int:
        return len(self._questions)

    def phase(self, phase_id: str) -> Optional[Phase]:
        return self._phase_by_id.get(phase_id)

    def phase_of(self, question_id: str) -> Optional[Phase]:
        question = self._by_id.get(question_id)
        if question is None:
            return None
        return self._phase_by_id[question.phase_id]

    def required_questions(self) -> List[Question]:
        return [q for q in self._questions if q.required]

    def total_points(self) -> int:
        return sum(q.points for q in self._questions)

    def points_for(self, question_ids: Iterable[str]) -> int:
        """Sum of point values for the given ids; unknown ids count zero."""
        return sum(self._by_id[qid].points for qid in set(question_ids) if qid in self._by_id)

    def current_phase_for_points(self, points: int) -> Phase:
        """Highest phase whose threshold is reached, else the first phase."""
        for phase in reversed(self._phases):
            if points >= phase.required_points:
                return phase
        return self._phases[0]

    def next_phase_for_points(self, points: int) -> Optional[Phase]:
        """First phase whose threshold is still ahead, if any."""
        for phase in self._phases:
            if phase.required_points > points:
                return phase
        return None


class ExclusionPolicy:
    """
    Filters out questions already populated during account registration.

    The exclusion set is static; it never depends on the user's answers.
    """

    def __init__(
        self,
        catalog: QuestionCatalog,
        excluded_ids: Optional[Iterable[str]] = None,
    ):
        self.catalog = catalog
        self.excluded_ids: FrozenSet[str] = frozenset(
            REGISTRATION_QUESTION_IDS if excluded_ids is None else excluded_ids
        )

    def is_excluded(self, question_id: str) -> bool:
        return question_id in self.excluded_ids

    def effective_questions(self) -> List[Question]:
        return [q for q in self.catalog.all_questions() if q.id not in self.excluded_ids]

    def excluded_in_catalog(self) -> FrozenSet[str]:
        """Excluded ids that the catalog actually declares."""
        return frozenset(qid for qid in self.excluded_ids if qid in self.catalog)
