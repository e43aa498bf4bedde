"""
Reward tier calculation.

Floor semantics: the tier with the greatest threshold not above the
current points, or the lowest tier when none qualifies.
"""

from typing import List, Optional

from onboarding.catalog.catalog import validate_tiers
from onboarding.catalog.data import REWARD_TIERS
from onboarding.catalog.models import RewardTier


class RewardTierCalculator:
    def __init__(self, tiers: Optional[List[RewardTier]] = None):
        tiers = list(REWARD_TIERS if tiers is None else tiers)
        validate_tiers(tiers)
        self.tiers = tiers

    def tier_for(self, points: int) -> RewardTier:
        selected = None
        for tier in self.tiers:
            if tier.points_threshold <= points:
                selected = tier
        return selected or self.tiers[0]

    def next_tier(self, points: int) -> Optional[RewardTier]:
        for tier in self.tiers:
            if tier.points_threshold > points:
                return tier
        return None

    def points_to_next_tier(self, points: int) -> Optional[int]:
        upcoming = self.next_tier(points)
        if upcoming is None:
            return None
        return upcoming.points_threshold - points
