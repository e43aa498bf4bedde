"""
Onboarding Engine Configuration
===============================
Environment-driven settings.

Environment Variables:
- PROFILE_API_BASE_URL: Progressive profile service base URL (empty = in-memory service)
- PROFILE_API_TIMEOUT_SECONDS: Request timeout
- PROFILE_API_MAX_RETRIES: Retries on 429/5xx/timeouts
- PROFILE_API_RETRY_BACKOFF_SECONDS: Linear backoff step between retries
- ONBOARDING_CACHE_URL: SQLAlchemy URL for the device-local cache (empty = disabled)
- ONBOARDING_COMPLETION_RATIO: Share of all questions needed for completion
- ONBOARDING_TYPING_DELAY_SECONDS: Presentation pacing before each prompt
- LOG_LEVEL: Root log level
"""

import os
import logging

PROFILE_API_BASE_URL = os.getenv("PROFILE_API_BASE_URL", "").rstrip("/")
PROFILE_API_TIMEOUT_SECONDS = float(os.getenv("PROFILE_API_TIMEOUT_SECONDS", "15"))
PROFILE_API_MAX_RETRIES = int(os.getenv("PROFILE_API_MAX_RETRIES", "2"))
PROFILE_API_RETRY_BACKOFF_SECONDS = float(os.getenv("PROFILE_API_RETRY_BACKOFF_SECONDS", "0.5"))

ONBOARDING_CACHE_URL = os.getenv("ONBOARDING_CACHE_URL", "sqlite:///onboarding_cache.db")

# Fix for providers that still hand out 'postgres://' URLs
if ONBOARDING_CACHE_URL.startswith("postgres://"):
    ONBOARDING_CACHE_URL = ONBOARDING_CACHE_URL.replace("postgres://", "postgresql://", 1)

COMPLETION_RATIO = float(os.getenv("ONBOARDING_COMPLETION_RATIO", "0.9"))
TYPING_DELAY_SECONDS = float(os.getenv("ONBOARDING_TYPING_DELAY_SECONDS", "0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
