"""
Scoring Layer

Derived measures over answered questions:
- Completion percentage and the complete/incomplete decision
- Reward tier for accumulated points

Version: scoring_layer_v1
"""

from .completion import (
    CompletionEvaluator,
    CompletionReport,
    PhaseProgress,
    motivational_message,
)
from .rewards import RewardTierCalculator

__all__ = [
    "CompletionEvaluator",
    "CompletionReport",
    "PhaseProgress",
    "motivational_message",
    "RewardTierCalculator",
]

__version__ = "scoring_layer_v1"
