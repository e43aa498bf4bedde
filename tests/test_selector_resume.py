"""
Selection & Resume Tests
========================
Tests for QuestionSelector.next_question and ResumeResolver.resolve.

Tests:
1. next_question never returns an answered question
2. Deterministic lowest-index selection, skips and exclusions
3. Stale answered ids are ignored
4. Resume point scenarios (empty, essential done, all done)
5. Resolver idempotence
"""

import random

import pytest

from onboarding.catalog import ExclusionPolicy, InputKind, Phase, Question, QuestionCatalog
from onboarding.progress import COMPLETED_PHASE_ID, QuestionSelector, ResumePoint, ResumeResolver


@pytest.fixture
def catalog():
    return QuestionCatalog()


def make_catalog_with_registration_question() -> QuestionCatalog:
    questions = [
        Question(id=qid, prompt=qid, input_kind=InputKind.SHORT_TEXT, phase_id="p1", category="test")
        for qid in ("full_name", "hometown", "email", "favourite_dish")
    ]
    return QuestionCatalog([Phase(id="p1", name="P1", questions=questions)])


def random_answered_sets(ids, count=200, seed=7):
    rng = random.Random(seed)
    for _ in range(count):
        size = rng.randint(1, len(ids))
        yield set(rng.sample(ids, size))


# ============================================
# SELECTOR
# ============================================

class TestQuestionSelector:

    def test_first_question_for_new_user(self, catalog):
        assert QuestionSelector(catalog).next_question(set()).id == "family_stories"

    def test_never_returns_answered_question(self, catalog):
        selector = QuestionSelector(catalog)
        for answered in random_answered_sets(catalog.question_ids()):
            question = selector.next_question(answered)
            if question is not None:
                assert question.id not in answered

    def test_lowest_index_unanswered(self, catalog):
        selector = QuestionSelector(catalog)
        answered = {"family_stories", "childhood_nickname", "childhood_memories"}
        assert selector.next_question(answered).id == "childhood_friends"

    def test_none_when_everything_answered(self, catalog):
        assert QuestionSelector(catalog).next_question(set(catalog.question_ids())) is None

    def test_deterministic(self, catalog):
        selector = QuestionSelector(catalog)
        answered = {"family_stories", "father_name"}
        picks = {selector.next_question(answered).id for _ in range(10)}
        assert picks == {"childhood_nickname"}

    def test_dependencies_are_not_enforced(self, catalog):
        selector = QuestionSelector(catalog)
        answered = {"family_stories", "childhood_nickname", "childhood_friends", "childhood_memories"}
        question = selector.next_question(answered, skipped_ids=["father_name", "mother_name"])
        assert question.id == "siblings_relatives"
        assert catalog.question("siblings_relatives").dependencies == ["father_name", "mother_name"]

    def test_skipped_ids_passed_over(self, catalog):
        selector = QuestionSelector(catalog)
        assert selector.next_question({"family_stories"}, skipped_ids=["childhood_nickname"]).id == "childhood_friends"

    def test_excluded_questions_never_selected(self):
        catalog = make_catalog_with_registration_question()
        selector = QuestionSelector(catalog, ExclusionPolicy(catalog))
        assert selector.next_question(set()).id == "hometown"
        assert selector.next_question({"hometown"}).id == "favourite_dish"
        assert selector.next_question({"hometown", "favourite_dish"}) is None

    def test_stale_answered_ids_ignored(self, catalog):
        selector = QuestionSelector(catalog)
        assert selector.next_question({"retired_question"}).id == "family_stories"

    def test_unanswered_listing(self, catalog):
        unanswered = QuestionSelector(catalog).unanswered({"family_stories"})
        assert len(unanswered) == 17
        assert unanswered[0].id == "childhood_nickname"

    def test_deleted_answer_reappears(self, catalog):
        selector = QuestionSelector(catalog)
        answered = set(catalog.question_ids()[:5])
        answered.discard("childhood_friends")
        assert selector.next_question(answered).id == "childhood_friends"


# ============================================
# RESUME RESOLVER
# ============================================

class TestResumeResolver:

    def test_empty_answers_start_fresh(self, catalog):
        point = ResumeResolver(catalog).resolve(set())
        assert point == ResumePoint(has_progress=False, phase_id="essential", question_index_within_phase=0)

    def test_essential_done_resumes_at_core_start(self, catalog):
        point = ResumeResolver(catalog).resolve({"family_stories"})
        assert point.has_progress is True
        assert point.phase_id == "core"
        assert point.question_index_within_phase == 0

    def test_resume_mid_phase(self, catalog):
        answered = {"family_stories", "childhood_nickname", "childhood_friends"}
        point = ResumeResolver(catalog).resolve(answered)
        assert (point.phase_id, point.question_index_within_phase) == ("core", 2)

    def test_gap_in_earlier_phase_wins(self, catalog):
        answered = set(catalog.question_ids()) - {"family_stories"}
        point = ResumeResolver(catalog).resolve(answered)
        assert (point.phase_id, point.question_index_within_phase) == ("essential", 0)

    def test_all_answered_is_completed_sentinel(self, catalog):
        point = ResumeResolver(catalog).resolve(set(catalog.question_ids()))
        assert point.phase_id == COMPLETED_PHASE_ID
        assert point.is_completed
        assert point.has_progress

    def test_only_stale_ids_counts_as_progress(self, catalog):
        point = ResumeResolver(catalog).resolve({"retired_question"})
        assert point.has_progress is True
        assert (point.phase_id, point.question_index_within_phase) == ("essential", 0)

    def test_idempotent(self, catalog):
        resolver = ResumeResolver(catalog)
        for answered in random_answered_sets(catalog.question_ids(), count=50):
            assert resolver.resolve(answered) == resolver.resolve(answered)
