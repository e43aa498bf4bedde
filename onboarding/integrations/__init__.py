"""
External Integrations

Progressive profile service client (HTTP) and its in-memory stand-in.
"""

from .models import RemoteProgress, SaveAck, FinalizeResponse
from .profile_client import (
    ProgressiveProfileClient,
    ProfileServiceError,
    ProfileServiceAuthError,
    ProfileServiceNotFoundError,
    ProfileServiceValidationError,
    ProfileServiceRateLimitError,
    ProfileServiceUnavailableError,
)
from .mocks import InMemoryProfileService

__all__ = [
    "RemoteProgress",
    "SaveAck",
    "FinalizeResponse",
    "ProgressiveProfileClient",
    "ProfileServiceError",
    "ProfileServiceAuthError",
    "ProfileServiceNotFoundError",
    "ProfileServiceValidationError",
    "ProfileServiceRateLimitError",
    "ProfileServiceUnavailableError",
    "InMemoryProfileService",
]
