"""
Finalization Gateway
====================
Hands a completed onboarding profile to the profile-sync / matching service.

BEST EFFORT: finalization never gates user-perceived completion.
- Service unavailable  = FINALIZE_UNAVAILABLE (retry later)
- Credentials rejected = FINALIZE_AUTH (retry after re-login)
- Service said no      = FINALIZE_REJECTED (retry later)

Idempotent: once a user's finalize succeeded the cached result is returned
and the service is not called again.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, Dict, Optional

from onboarding.integrations.profile_client import (
    ProfileServiceAuthError,
    ProfileServiceError,
)
from onboarding.shared.context import SessionContext
from onboarding.shared.hashing import canonicalize_and_hash

logger = logging.getLogger(__name__)


# ============================================
# ERROR CODES
# ============================================

class FinalizationError(Enum):
    FINALIZE_UNAVAILABLE = "FINALIZE_UNAVAILABLE"
    FINALIZE_REJECTED = "FINALIZE_REJECTED"
    FINALIZE_AUTH = "FINALIZE_AUTH"


# ============================================
# RESULT
# ============================================

@dataclass
class FinalizationResult:
    success: bool
    updated_profile: Dict[str, Any] = field(default_factory=dict)
    error_code: Optional[FinalizationError] = None
    message: Optional[str] = None
    profile_hash: Optional[str] = None
    attempted_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "updated_profile": self.updated_profile,
            "error_code": self.error_code.value if self.error_code else None,
            "message": self.message,
            "profile_hash": self.profile_hash,
            "attempted_at": self.attempted_at,
        }


# ============================================
# GATEWAY
# ============================================

class FinalizationGateway:
    def __init__(self, service):
        self.service = service
        self._lock = Lock()
        self._succeeded: Dict[str, FinalizationResult] = {}

    def has_finalized(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._succeeded

    def finalize(self, context: SessionContext) -> FinalizationResult:
        with self._lock:
            cached = self._succeeded.get(context.user_id)
        if cached is not None:
            logger.debug(f"Finalize already succeeded for {context.user_id}")
            return cached

        try:
            response = self.service.finalize(context)
        except ProfileServiceAuthError as e:
            logger.warning(f"Finalize for {context.user_id} rejected credentials: {e}")
            return FinalizationResult(False, error_code=FinalizationError.FINALIZE_AUTH, message=str(e))
        except ProfileServiceError as e:
            logger.warning(f"Finalize for {context.user_id} failed: {e}")
            return FinalizationResult(False, error_code=FinalizationError.FINALIZE_UNAVAILABLE, message=str(e))

        if not response.success:
            logger.warning(f"Finalize for {context.user_id} returned error: {response.message}")
            return FinalizationResult(
                False,
                error_code=FinalizationError.FINALIZE_REJECTED,
                message=response.message,
            )

        profile = dict(response.user or {})
        profile.update(response.profile or {})
        profile["profile_completed"] = True
        profile["profile_complete"] = True

        result = FinalizationResult(
            True,
            updated_profile=profile,
            profile_hash=canonicalize_and_hash(profile),
        )
        with self._lock:
            self._succeeded[context.user_id] = result
        logger.info(f"Finalized onboarding profile for {context.user_id}")
        return result
