"""
Question Catalog Layer

Phased, declarative question registry for the progressive profile:
- Phases in declared order, each with a point threshold
- Questions with stable ids, input kinds and point values
- Reward tiers
- Registration exclusion set

Version: question_catalog_v1
"""

from .models import (
    InputKind,
    Question,
    Phase,
    RewardTier,
    ChoiceCard,
    DateRange,
)
from .data import QUESTION_PHASES, REWARD_TIERS, REGISTRATION_QUESTION_IDS
from .catalog import (
    QuestionCatalog,
    ExclusionPolicy,
    CatalogError,
    validate_phases,
    validate_tiers,
)

__all__ = [
    "InputKind",
    "Question",
    "Phase",
    "RewardTier",
    "ChoiceCard",
    "DateRange",
    "QUESTION_PHASES",
    "REWARD_TIERS",
    "REGISTRATION_QUESTION_IDS",
    "QuestionCatalog",
    "ExclusionPolicy",
    "CatalogError",
    "validate_phases",
    "validate_tiers",
]

__version__ = "question_catalog_v1"
