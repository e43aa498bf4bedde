"""
Progress Store
==============
The only component that touches persistence.

Local-first: every mutation updates the in-memory ProgressState (and the
device cache) before the remote service is asked to confirm it. Remote
failures never roll local state back; the write goes to the outbox and is
retried on a later opportunity.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from onboarding.catalog.catalog import QuestionCatalog
from onboarding.catalog.models import Question
from onboarding.integrations.models import RemoteProgress
from onboarding.integrations.profile_client import ProfileServiceError
from onboarding.shared.context import SessionContext
from .answers import AnswerDecodeError, answer_from_wire, answer_to_wire
from .local_cache import LocalProgressCache
from .models import AnswerValue, ProgressState
from .outbox import AnswerOutbox

logger = logging.getLogger(__name__)


@dataclass
class SaveOutcome:
    """What happened to a save: confirmed remotely, or queued for retry."""
    question_ids: tuple
    confirmed: bool
    queued: bool = False
    error: Optional[str] = None


class ProgressStore:
    """
    Loads and saves resumable onboarding state.

    `service` is a ProgressiveProfileClient or anything with the same
    operations (e.g. InMemoryProfileService).
    """

    def __init__(
        self,
        service,
        catalog: QuestionCatalog,
        cache: Optional[LocalProgressCache] = None,
    ):
        self.service = service
        self.catalog = catalog
        self.cache = cache
        self._outboxes: Dict[str, AnswerOutbox] = {}

    def outbox_for(self, user_id: str) -> AnswerOutbox:
        outbox = self._outboxes.get(user_id)
        if outbox is None:
            outbox = AnswerOutbox(user_id, self.cache)
            self._outboxes[user_id] = outbox
        return outbox

    def _cache_state(self, state: ProgressState) -> None:
        if self.cache is not None:
            self.cache.save_state(state)

    # ===== Load =====

    def _decode(self, question: Question, raw: Any) -> Optional[AnswerValue]:
        try:
            return answer_from_wire(question, raw)
        except AnswerDecodeError as e:
            logger.warning(f"Ignoring stored answer: {e}")
            return None

    def state_from_remote(self, user_id: str, remote: RemoteProgress) -> ProgressState:
        """Build typed local state from the service's raw answers."""
        state = ProgressState(user_id=user_id, current_phase_id=remote.current_phase)
        answered_ids = list(dict.fromkeys(list(remote.answered_question_ids) + list(remote.answers.keys())))

        for question_id in answered_ids:
            question = self.catalog.question(question_id)
            if question is None:
                # Catalog changed since this was saved; the selector skips it
                logger.debug(f"Answered id {question_id} is no longer in the catalog")
                state.answered_question_ids.add(question_id)
                continue
            if question_id in remote.answers:
                value = self._decode(question, remote.answers[question_id])
                if value is None:
                    continue
                state.answers[question_id] = value
            state.answered_question_ids.add(question_id)

        if remote.total_points is not None:
            state.total_points = remote.total_points
            state.points_overridden = True
        else:
            state.total_points = self.catalog.points_for(state.answered_question_ids)
        state.completed = remote.completed
        return state

    def load(self, context: SessionContext) -> ProgressState:
        """
        Load progress: remote service, else cached snapshot, else empty.
        Unconfirmed outbox writes are re-applied on top.
        """
        user_id = context.user_id
        try:
            remote = self.service.get_progress(context)
            state = self.state_from_remote(user_id, remote)
            logger.info(f"Loaded {len(state.answered_question_ids)} answered questions for {user_id}")
        except ProfileServiceError as e:
            logger.warning(f"Failed to load remote progress for {user_id}: {e}")
            state = self.cache.load_state(user_id) if self.cache is not None else None
            if state is None:
                state = ProgressState(user_id=user_id)

        for write in self.outbox_for(user_id).pending():
            question = self.catalog.question(write.question_id)
            if question is None:
                continue
            value = self._decode(question, write.answer)
            if value is not None:
                state.apply_answer(question, value)

        self._cache_state(state)
        return state

    # ===== Save =====

    def record_answer(
        self,
        context: SessionContext,
        state: ProgressState,
        question: Question,
        value: AnswerValue,
    ) -> SaveOutcome:
        """Apply locally, then try to confirm remotely."""
        state.apply_answer(question, value)
        self._cache_state(state)

        wire = answer_to_wire(value)
        outbox = self.outbox_for(context.user_id)
        try:
            ack = self.service.save_answer(context, question.id, wire, question.points)
        except ProfileServiceError as e:
            logger.warning(f"Save of {question.id} for {context.user_id} failed, queued for retry: {e}")
            outbox.enqueue(question.id, wire, question.points, error=str(e))
            return SaveOutcome((question.id,), confirmed=False, queued=True, error=str(e))

        if not ack.accepted:
            error = ack.message or "save rejected"
            logger.warning(f"Save of {question.id} for {context.user_id} not accepted, queued for retry: {error}")
            outbox.enqueue(question.id, wire, question.points, error=error)
            return SaveOutcome((question.id,), confirmed=False, queued=True, error=error)

        outbox.discard(question.id)
        logger.debug(f"Answer {question.id} confirmed for {context.user_id}")
        return SaveOutcome((question.id,), confirmed=True)

    def save_batch(
        self,
        context: SessionContext,
        state: ProgressState,
        answers: Mapping[str, AnswerValue],
        auto_saved: bool = False,
    ) -> SaveOutcome:
        """
        Apply several answers at once. Submitting the same batch twice
        leaves the same state (no double points, same values).
        """
        applied: Dict[str, Any] = {}
        for question_id, value in answers.items():
            question = self.catalog.question(question_id)
            if question is None:
                logger.warning(f"Batch answer for unknown question {question_id} ignored")
                continue
            state.apply_answer(question, value)
            applied[question_id] = answer_to_wire(value)
        self._cache_state(state)

        ids = tuple(applied)
        if not applied:
            return SaveOutcome(ids, confirmed=True)

        outbox = self.outbox_for(context.user_id)
        try:
            ack = self.service.save_batch(context, applied, auto_saved=auto_saved)
            error = None if ack.accepted else (ack.message or "batch rejected")
        except ProfileServiceError as e:
            error = str(e)

        if error is not None:
            logger.warning(f"Batch save of {len(applied)} answers for {context.user_id} failed: {error}")
            for question_id, wire in applied.items():
                outbox.enqueue(question_id, wire, self.catalog.question(question_id).points, error=error)
            return SaveOutcome(ids, confirmed=False, queued=True, error=error)

        for question_id in applied:
            outbox.discard(question_id)
        return SaveOutcome(ids, confirmed=True)

    def flush_pending(self, context: SessionContext) -> int:
        """Retry every queued write as one auto-saved batch. Returns the number confirmed."""
        outbox = self.outbox_for(context.user_id)
        payload = outbox.batch_payload()
        if not payload:
            return 0

        keys = outbox.snapshot_keys()
        try:
            ack = self.service.save_batch(context, payload, auto_saved=True)
        except ProfileServiceError as e:
            logger.warning(f"Retry of {len(payload)} queued answers for {context.user_id} failed: {e}")
            outbox.record_failure(str(e))
            return 0

        if not ack.accepted:
            outbox.record_failure(ack.message or "batch rejected")
            return 0

        flushed = outbox.mark_flushed(keys)
        logger.info(f"Flushed {flushed} queued answers for {context.user_id}")
        return flushed

    def delete_answer(self, context: SessionContext, state: ProgressState, question_id: str) -> bool:
        """Remove an answer locally and drop any queued write for it."""
        question = self.catalog.question(question_id)
        points = question.points if question is not None else 0
        removed = state.remove_answer(question_id, points=points)
        self.outbox_for(context.user_id).discard(question_id)
        if removed:
            self._cache_state(state)
        return removed

    def complete_phase(self, context: SessionContext, phase_id: str) -> bool:
        """Best-effort phase completion notice."""
        try:
            ack = self.service.complete_phase(context, phase_id)
            return ack.accepted
        except ProfileServiceError as e:
            logger.warning(f"Phase-complete for {phase_id} ({context.user_id}) failed: {e}")
            return False

    def mark_complete(self, state: ProgressState, finalized: bool) -> None:
        state.mark_completed()
        state.finalized = state.finalized or finalized
        self._cache_state(state)

    def save_snapshot(self, state: ProgressState) -> None:
        self._cache_state(state)
