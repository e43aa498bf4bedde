"""
In-Memory Progressive Profile Service

Drop-in replacement for ProgressiveProfileClient that keeps answers in
process memory. Used for local development when PROFILE_API_BASE_URL is
not configured, and by the test suite.

Failure switches (`fail_saves`, `fail_finalize`, `fail_loads`) make the
service raise ProfileServiceUnavailableError so retry paths can be driven
without a network.

Usage:
    from onboarding.integrations.mocks import InMemoryProfileService

    service = InMemoryProfileService()
    store = ProgressStore(service, catalog)
"""

from __future__ import annotations

import copy
from threading import Lock
from typing import Any, Dict, List, Optional

from onboarding.shared.context import SessionContext
from .models import FinalizeResponse, RemoteProgress, SaveAck
from .profile_client import ProfileServiceUnavailableError


class InMemoryProfileService:
    """Same operations as ProgressiveProfileClient, backed by dicts."""

    def __init__(self):
        self._lock = Lock()
        self._answers: Dict[str, Dict[str, Any]] = {}
        self._points: Dict[str, int] = {}
        self._completed_phases: Dict[str, List[str]] = {}
        self._finalized: Dict[str, Dict[str, Any]] = {}
        self.fail_saves = False
        self.fail_finalize = False
        self.fail_loads = False
        self.calls: List[str] = []

    @property
    def is_configured(self) -> bool:
        return True

    def seed(self, user_id: str, answers: Dict[str, Any], total_points: Optional[int] = None) -> None:
        with self._lock:
            self._answers[user_id] = dict(answers)
            if total_points is not None:
                self._points[user_id] = total_points

    def answers_for(self, user_id: str) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._answers.get(user_id, {}))

    def completed_phases_for(self, user_id: str) -> List[str]:
        with self._lock:
            return list(self._completed_phases.get(user_id, []))

    def is_finalized(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._finalized

    def _fail(self, operation: str) -> None:
        raise ProfileServiceUnavailableError(f"{operation} unavailable (in-memory failure switch)", status_code=503)

    def get_progress(self, context: SessionContext) -> RemoteProgress:
        self.calls.append("get_progress")
        if self.fail_loads:
            self._fail("get_progress")
        with self._lock:
            answers = copy.deepcopy(self._answers.get(context.user_id, {}))
            return RemoteProgress(
                answers=answers,
                answered_question_ids=list(answers.keys()),
                total_points=self._points.get(context.user_id),
                completed=context.user_id in self._finalized,
            )

    def save_answer(self, context: SessionContext, question_id: str, answer: Any, points: int = 0) -> SaveAck:
        self.calls.append("save_answer")
        if self.fail_saves:
            self._fail("save_answer")
        with self._lock:
            self._answers.setdefault(context.user_id, {})[question_id] = copy.deepcopy(answer)
        return SaveAck(accepted=True, points_earned=points)

    def save_batch(self, context: SessionContext, answers: Dict[str, Any], auto_saved: bool = False) -> SaveAck:
        self.calls.append("save_batch")
        if self.fail_saves:
            self._fail("save_batch")
        with self._lock:
            self._answers.setdefault(context.user_id, {}).update(copy.deepcopy(answers))
        return SaveAck(accepted=True)

    def complete_phase(self, context: SessionContext, phase_id: str) -> SaveAck:
        self.calls.append("complete_phase")
        with self._lock:
            phases = self._completed_phases.setdefault(context.user_id, [])
            if phase_id not in phases:
                phases.append(phase_id)
        return SaveAck(accepted=True)

    def finalize(self, context: SessionContext) -> FinalizeResponse:
        self.calls.append("finalize")
        if self.fail_finalize:
            self._fail("finalize")
        with self._lock:
            profile = self._finalized.get(context.user_id)
            if profile is None:
                profile = {
                    "user_id": context.user_id,
                    "answers": copy.deepcopy(self._answers.get(context.user_id, {})),
                    "profile_completed": True,
                }
                self._finalized[context.user_id] = profile
            return FinalizeResponse(
                success=True,
                profile=copy.deepcopy(profile),
                user={"id": context.user_id, "profile_completed": True, "profile_complete": True},
            )
