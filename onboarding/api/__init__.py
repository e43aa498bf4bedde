"""
Onboarding HTTP surface (FastAPI).
"""

from .router import router, get_registry

__all__ = ["router", "get_registry"]
