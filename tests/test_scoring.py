"""
Scoring Tests
=============
Tests for CompletionEvaluator and RewardTierCalculator.

Tests:
1. Percentage bounds and the single-answer scenario (~6%)
2. Completion needs required answers AND the 90% ratio
3. Monotonicity of percentage, completion and tiers
4. Tier floor semantics and next-tier helpers
"""

import random

import pytest

from onboarding.catalog import QuestionCatalog, RewardTier
from onboarding.scoring import CompletionEvaluator, RewardTierCalculator, motivational_message
from onboarding.scoring.completion import round_half_up


@pytest.fixture
def catalog():
    return QuestionCatalog()


@pytest.fixture
def evaluator(catalog):
    return CompletionEvaluator(catalog, ratio=0.9)


def required_ids(catalog):
    return {q.id for q in catalog.required_questions()}


def optional_ids(catalog):
    return [q.id for q in catalog.all_questions() if not q.required]


# ============================================
# PERCENTAGE
# ============================================

class TestPercentage:

    def test_empty_is_zero(self, evaluator):
        assert evaluator.percentage(set()) == 0

    def test_everything_is_hundred(self, evaluator, catalog):
        assert evaluator.percentage(set(catalog.question_ids())) == 100

    def test_single_essential_answer_is_six_percent(self, evaluator):
        assert evaluator.percentage({"family_stories"}) == 6

    def test_counts_all_phases_not_just_current(self, evaluator):
        # 2 of 18 answered, from different phases
        assert evaluator.percentage({"family_stories", "hobbies"}) == 11

    def test_stale_ids_do_not_count(self, evaluator):
        assert evaluator.percentage({"retired_question"}) == 0
        assert evaluator.answered_count({"family_stories", "retired_question"}) == 1

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(5.4) == 5
        assert round_half_up(5.56) == 6


# ============================================
# COMPLETION
# ============================================

class TestIsComplete:

    def test_all_answered_is_complete(self, evaluator, catalog):
        assert evaluator.is_complete(set(catalog.question_ids())) is True

    def test_required_only_at_eighty_percent_is_not_complete(self, evaluator, catalog):
        answered = required_ids(catalog) | set(optional_ids(catalog)[:7])
        assert len(answered) == 14
        assert evaluator.percentage(answered) == 78
        assert evaluator.is_complete(answered) is False

        answered |= set(optional_ids(catalog)[7:8])
        assert evaluator.percentage(answered) == 83
        assert evaluator.is_complete(answered) is False

    def test_ninety_percent_threshold(self, evaluator, catalog):
        optional = optional_ids(catalog)
        sixteen = required_ids(catalog) | set(optional[:9])
        seventeen = required_ids(catalog) | set(optional[:10])
        assert evaluator.is_complete(sixteen) is False
        assert evaluator.is_complete(seventeen) is True

    def test_missing_required_blocks_completion(self, evaluator, catalog):
        answered = set(catalog.question_ids()) - {"profession"}
        assert evaluator.percentage(answered) == 94
        assert evaluator.is_complete(answered) is False

    def test_empty_is_not_complete(self, evaluator):
        assert evaluator.is_complete(set()) is False

    def test_ratio_is_configurable(self, catalog):
        lenient = CompletionEvaluator(catalog, ratio=0.5)
        answered = required_ids(catalog) | set(optional_ids(catalog)[:2])
        assert lenient.is_complete(answered) is True

    def test_monotonic_when_adding_answers(self, evaluator, catalog):
        rng = random.Random(11)
        for _ in range(25):
            order = catalog.question_ids()
            rng.shuffle(order)
            answered = set()
            last_pct, was_complete = 0, False
            for question_id in order:
                answered.add(question_id)
                pct = evaluator.percentage(answered)
                complete = evaluator.is_complete(answered)
                assert pct >= last_pct
                assert not (was_complete and not complete)
                last_pct, was_complete = pct, complete
            assert was_complete


class TestCompletionReport:

    def test_report_breakdown(self, evaluator):
        report = evaluator.report({"family_stories", "father_name", "hobbies"})
        assert report.percentage == 17
        assert report.answered_count == 3
        assert report.total_count == 18
        assert report.required_answered == 2
        assert report.required_total == 7
        assert report.is_complete is False

        by_phase = {p.phase_id: p for p in report.phases}
        assert by_phase["essential"].is_done
        assert (by_phase["core"].answered, by_phase["core"].total) == (1, 6)
        assert (by_phase["rich"].answered, by_phase["rich"].total) == (1, 11)

    @pytest.mark.parametrize("pct,fragment", [
        (0, "Great start"),
        (30, "doing amazing"),
        (60, "Fantastic progress"),
        (90, "superstar"),
    ])
    def test_motivational_message_bands(self, pct, fragment):
        assert fragment in motivational_message(pct)


# ============================================
# REWARD TIERS
# ============================================

class TestRewardTiers:

    def test_reference_tiers(self):
        calc = RewardTierCalculator()
        assert calc.tier_for(0).reward_name == "Newcomer"
        assert calc.tier_for(19).reward_name == "Newcomer"
        assert calc.tier_for(20).reward_name == "Connector"
        assert calc.tier_for(55).reward_name == "Storyteller"
        assert calc.tier_for(90).reward_name == "Legacy Keeper"

    def test_floor_when_nothing_qualifies(self):
        calc = RewardTierCalculator([
            RewardTier(points_threshold=10, reward_name="Bronze"),
            RewardTier(points_threshold=30, reward_name="Silver"),
        ])
        assert calc.tier_for(0).reward_name == "Bronze"
        assert calc.tier_for(-5).reward_name == "Bronze"

    def test_monotonic_in_points(self):
        calc = RewardTierCalculator()
        thresholds = [calc.tier_for(points).points_threshold for points in range(0, 120)]
        assert thresholds == sorted(thresholds)

    def test_next_tier_and_distance(self):
        calc = RewardTierCalculator()
        assert calc.next_tier(5).reward_name == "Connector"
        assert calc.points_to_next_tier(5) == 15
        assert calc.next_tier(80) is None
        assert calc.points_to_next_tier(80) is None

    def test_invalid_tiers_rejected(self):
        with pytest.raises(ValueError):
            RewardTierCalculator([
                RewardTier(points_threshold=50, reward_name="B"),
                RewardTier(points_threshold=20, reward_name="A"),
            ])
