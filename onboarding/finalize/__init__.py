"""
Finalize Handoff

Best-effort, idempotent sync of a completed onboarding profile into the
main user record and the downstream matching system.
"""

from .gateway import FinalizationGateway, FinalizationResult, FinalizationError

__all__ = [
    "FinalizationGateway",
    "FinalizationResult",
    "FinalizationError",
]
