"""
Process-wide session registry.

Holds one orchestrator per user id and the services shared by all of
them (one ProgressStore, one FinalizationGateway).
"""

import logging
from threading import Lock
from typing import Dict, Optional

from onboarding import config
from onboarding.catalog.catalog import QuestionCatalog
from onboarding.finalize.gateway import FinalizationGateway
from onboarding.integrations.mocks import InMemoryProfileService
from onboarding.integrations.profile_client import ProgressiveProfileClient
from onboarding.progress.local_cache import LocalProgressCache
from onboarding.progress.store import ProgressStore
from onboarding.scoring.rewards import RewardTierCalculator
from onboarding.shared.context import SessionContext
from .orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)


def build_profile_service():
    """HTTP client when PROFILE_API_BASE_URL is set, otherwise the in-memory service."""
    if config.PROFILE_API_BASE_URL:
        return ProgressiveProfileClient()
    logger.warning("PROFILE_API_BASE_URL not set, using in-memory profile service")
    return InMemoryProfileService()


class SessionRegistry:
    def __init__(
        self,
        store: ProgressStore,
        gateway: Optional[FinalizationGateway] = None,
        rewards: Optional[RewardTierCalculator] = None,
        **orchestrator_options,
    ):
        self.store = store
        self.gateway = gateway or FinalizationGateway(store.service)
        self.rewards = rewards or RewardTierCalculator()
        self.orchestrator_options = orchestrator_options
        self._lock = Lock()
        self._sessions: Dict[str, SessionOrchestrator] = {}

    @classmethod
    def from_config(cls) -> "SessionRegistry":
        cache = LocalProgressCache() if config.ONBOARDING_CACHE_URL else None
        store = ProgressStore(build_profile_service(), QuestionCatalog(), cache=cache)
        return cls(store)

    def get(self, user_id: str) -> Optional[SessionOrchestrator]:
        with self._lock:
            return self._sessions.get(user_id)

    def open(self, context: SessionContext) -> SessionOrchestrator:
        """
        Return the user's live session, or create a new one. An abandoned
        session is replaced, so starting again resumes from saved progress.
        """
        with self._lock:
            existing = self._sessions.get(context.user_id)
            if existing is not None and not existing.closed:
                return existing
            orchestrator = SessionOrchestrator(
                context, self.store, self.gateway, rewards=self.rewards, **self.orchestrator_options
            )
            self._sessions[context.user_id] = orchestrator
            logger.info(f"Opened onboarding session for {context.user_id}")
            return orchestrator

    def discard(self, user_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(user_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
