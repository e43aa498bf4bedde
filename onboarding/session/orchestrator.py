"""
Session Orchestrator
====================
Conversational state machine that drives one user's onboarding:

    Initializing -> Greeting -> AwaitingAnswer -> Validating -> Persisting
                 -> Advancing -> (AwaitingAnswer | Completed) -> Finalizing

Every user-visible message goes to an append-only EventLog, so the
orchestrator runs headless; a presentation layer renders the events.

One writer per session. An in-flight guard rejects a second action while
a load/persist/finalize call for the same session is still running.
"""

import logging
import time
from contextlib import contextmanager
from threading import Lock
from typing import Dict, FrozenSet, List, Optional, Set

from onboarding import config
from onboarding.catalog.catalog import ExclusionPolicy, QuestionCatalog
from onboarding.catalog.models import Question, RewardTier
from onboarding.finalize.gateway import FinalizationGateway, FinalizationResult
from onboarding.progress.answers import display_text
from onboarding.progress.models import AnswerValue, ProgressState
from onboarding.progress.resume import COMPLETED_PHASE_ID, ResumePoint, ResumeResolver
from onboarding.progress.selector import QuestionSelector
from onboarding.progress.store import ProgressStore
from onboarding.scoring.completion import CompletionEvaluator, CompletionReport, motivational_message
from onboarding.scoring.rewards import RewardTierCalculator
from onboarding.shared.context import SessionContext
from . import messages
from .errors import (
    AnswerValidationError,
    InvalidTransitionError,
    SessionBusyError,
    SessionClosedError,
    UnknownQuestionError,
)
from .models import EventKind, EventLog, RetryReport, SessionState, SessionView, TurnResult
from .validation import validate_answer

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.INITIALIZING: frozenset([SessionState.GREETING]),
    SessionState.GREETING: frozenset([SessionState.ADVANCING]),
    SessionState.AWAITING_ANSWER: frozenset([SessionState.VALIDATING, SessionState.ADVANCING]),
    SessionState.VALIDATING: frozenset([SessionState.AWAITING_ANSWER, SessionState.PERSISTING]),
    SessionState.PERSISTING: frozenset([SessionState.ADVANCING]),
    SessionState.ADVANCING: frozenset([SessionState.AWAITING_ANSWER, SessionState.COMPLETED]),
    SessionState.COMPLETED: frozenset([SessionState.FINALIZING, SessionState.ADVANCING]),
    # Only a deleted answer leads back out of Finalizing
    SessionState.FINALIZING: frozenset([SessionState.ADVANCING]),
}

ABANDONABLE_STATES = frozenset([SessionState.GREETING, SessionState.AWAITING_ANSWER])


class SessionOrchestrator:
    """
    Drives question -> answer -> persist -> advance for one user.

    Usage:
        orchestrator = SessionOrchestrator(context, store, gateway)
        orchestrator.start()
        orchestrator.submit_answer("family_stories", TextAnswer(text="..."))
    """

    def __init__(
        self,
        context: SessionContext,
        store: ProgressStore,
        gateway: FinalizationGateway,
        exclusions: Optional[ExclusionPolicy] = None,
        rewards: Optional[RewardTierCalculator] = None,
        completion_ratio: Optional[float] = None,
        typing_delay: Optional[float] = None,
    ):
        self.context = context
        self.store = store
        self.gateway = gateway
        self.catalog: QuestionCatalog = store.catalog
        self.exclusions = exclusions or ExclusionPolicy(self.catalog)
        self.selector = QuestionSelector(self.catalog, self.exclusions)
        self.resolver = ResumeResolver(self.catalog)
        self.rewards = rewards or RewardTierCalculator()
        self.evaluator = CompletionEvaluator(self.catalog, completion_ratio)
        self.typing_delay = config.TYPING_DELAY_SECONDS if typing_delay is None else typing_delay

        self.events = EventLog()
        self.state = SessionState.INITIALIZING
        self.transitions: List[SessionState] = [SessionState.INITIALIZING]
        self.progress: Optional[ProgressState] = None
        self.resume_point: Optional[ResumePoint] = None
        self.current_question: Optional[Question] = None
        self.finalization: Optional[FinalizationResult] = None
        self.finalize_pending = False
        self.closed = False

        self._skipped: Set[str] = set()
        self._in_flight = Lock()

    @property
    def user_id(self) -> str:
        return self.context.user_id

    # ===== Guards =====

    @contextmanager
    def _guard(self, action: str):
        if self.closed:
            raise SessionClosedError(f"Session for {self.user_id} was abandoned")
        if not self._in_flight.acquire(blocking=False):
            raise SessionBusyError(f"Cannot {action}: another call for {self.user_id} is still in flight")
        try:
            yield
        finally:
            self._in_flight.release()

    def _require_started(self, action: str) -> ProgressState:
        if self.progress is None:
            raise InvalidTransitionError(f"Cannot {action} before the session has started")
        return self.progress

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {new_state.value} is not allowed")
        logger.debug(f"Session {self.user_id}: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.transitions.append(new_state)

    def _question_or_raise(self, question_id: str) -> Question:
        question = self.catalog.question(question_id)
        if question is None:
            raise UnknownQuestionError(f"Unknown question: {question_id}")
        return question

    # ===== Derived views =====

    def answered_for_completion(self) -> Set[str]:
        """Answered ids plus the registration-captured ones the catalog declares."""
        progress = self._require_started("evaluate completion")
        return set(progress.answered_question_ids) | set(self.exclusions.excluded_in_catalog())

    def completion_report(self) -> CompletionReport:
        return self.evaluator.report(self.answered_for_completion())

    def current_tier(self) -> RewardTier:
        points = self.progress.total_points if self.progress is not None else 0
        return self.rewards.tier_for(points)

    def view(self) -> SessionView:
        view = SessionView(
            user_id=self.user_id,
            state=self.state,
            closed=self.closed,
            current_question=self.current_question,
            pending_writes=len(self.store.outbox_for(self.user_id)),
            finalize_pending=self.finalize_pending,
            events=list(self.events),
        )
        if self.progress is None:
            return view

        report = self.completion_report()
        points = self.progress.total_points
        upcoming = self.rewards.next_tier(points)
        return view.model_copy(update={
            "current_phase_id": self.progress.current_phase_id,
            "percentage": report.percentage,
            "is_complete": report.is_complete,
            "total_points": points,
            "tier": self.rewards.tier_for(points).reward_name,
            "next_tier": upcoming.reward_name if upcoming else None,
            "points_to_next_tier": self.rewards.points_to_next_tier(points),
            "motivational_message": motivational_message(report.percentage),
            "finalized": self.progress.finalized,
        })

    # ===== Events =====

    def _pace(self) -> None:
        if self.typing_delay > 0:
            time.sleep(self.typing_delay)

    def _say(self, text: str, question_id: Optional[str] = None) -> None:
        self.events.append(EventKind.SYSTEM_PROMPT, text, question_id=question_id)

    def _result(
        self,
        mark: int,
        accepted: bool = True,
        error: Optional[str] = None,
        saved_remotely: Optional[bool] = None,
    ) -> TurnResult:
        return TurnResult(
            state=self.state,
            accepted=accepted,
            events=self.events.since(mark),
            current_question_id=self.current_question.id if self.current_question else None,
            error=error,
            saved_remotely=saved_remotely,
        )

    # ===== Lifecycle =====

    def start(self) -> TurnResult:
        """
        Load progress, greet, then ask the first unanswered question.
        Answers queued by an earlier session are sent again on the way.
        """
        with self._guard("start"):
            if self.state != SessionState.INITIALIZING:
                raise InvalidTransitionError(f"Session for {self.user_id} already started")

            mark = len(self.events)
            self.progress = self.store.load(self.context)
            self._flush_outbox()
            self.resume_point = self.resolver.resolve(self.progress.answered_question_ids)
            logger.info(
                f"Session {self.user_id} resumes at {self.resume_point.phase_id}"
                f"[{self.resume_point.question_index_within_phase}]"
            )

            self._transition(SessionState.GREETING)
            answered = len(self.progress.answered_question_ids & set(self.catalog.question_ids()))
            self._say(messages.greeting(
                self.resume_point.has_progress,
                display_name=self.context.display_name,
                answered_count=answered,
            ))

            self._advance()
            return self._result(mark)

    def _advance(self) -> None:
        self._transition(SessionState.ADVANCING)
        progress = self.progress

        question = self.selector.next_question(progress.answered_question_ids, self._skipped)
        if question is not None:
            self._await(question)
            return

        if self.evaluator.is_complete(self.answered_for_completion()):
            self._complete()
            return

        # Incomplete with nothing left to ask: skipped questions are the only gap
        missed = self.selector.next_question(progress.answered_question_ids)
        if missed is not None:
            logger.info(f"Session {self.user_id} incomplete, re-asking skipped question {missed.id}")
            self._skipped.clear()
            self._await(missed)
            return

        # Completion needs both conditions; never mark it on exhaustion alone
        logger.error(f"Session {self.user_id}: no question left to ask but profile not complete")
        self._transition(SessionState.AWAITING_ANSWER)
        self.current_question = None
        self.store.save_snapshot(progress)

    def _await(self, question: Question) -> None:
        self._transition(SessionState.AWAITING_ANSWER)
        self.current_question = question
        self.progress.current_phase_id = question.phase_id
        self.store.save_snapshot(self.progress)
        self._pace()
        self._say(question.prompt, question_id=question.id)

    def _complete(self) -> None:
        self._transition(SessionState.COMPLETED)
        self.current_question = None
        self.progress.current_phase_id = COMPLETED_PHASE_ID
        for line in messages.celebration(self.context.display_name):
            self._say(line)
        self._finalize()

    def _pending_writes(self) -> int:
        return len(self.store.outbox_for(self.user_id))

    def _flush_outbox(self) -> int:
        """Best-effort resend of queued answers; failures stay queued."""
        if not self._pending_writes():
            return 0
        return self.store.flush_pending(self.context)

    def _finalize(self) -> None:
        self._transition(SessionState.FINALIZING)
        self._flush_outbox()
        pending = self._pending_writes()
        if pending:
            # The handoff must see every answer; retry_pending() finalizes once the outbox drains
            logger.warning(f"Finalize deferred for {self.user_id}: {pending} answers not yet saved remotely")
            self.store.mark_complete(self.progress, finalized=False)
            self.finalize_pending = True
            self._say(messages.finalize_deferred())
            return

        result = self.gateway.finalize(self.context)
        self.finalization = result

        # Completion is marked locally either way
        self.store.mark_complete(self.progress, finalized=result.success)
        self.finalize_pending = not result.success
        if result.success:
            self._say(messages.finalize_succeeded())
        else:
            logger.warning(
                f"Finalize deferred for {self.user_id}: "
                f"{result.error_code.value if result.error_code else 'unknown'}"
            )
            self._say(messages.finalize_deferred())

    # ===== Answers =====

    def submit_answer(self, question_id: str, value: AnswerValue) -> TurnResult:
        """
        Answer the question currently awaiting an answer.

        Validation failure re-prompts and persists nothing. A failed remote
        save is queued for retry and does not stop the session advancing.
        """
        with self._guard("submit an answer"):
            if self.state != SessionState.AWAITING_ANSWER or self.current_question is None:
                raise InvalidTransitionError(f"Session {self.user_id} is not awaiting an answer ({self.state.value})")
            question = self.current_question
            if question_id != question.id:
                self._question_or_raise(question_id)
                raise InvalidTransitionError(f"Awaiting an answer to '{question.id}', not '{question_id}'")

            mark = len(self.events)
            self._transition(SessionState.VALIDATING)
            try:
                value = validate_answer(question, value)
            except AnswerValidationError as e:
                self._transition(SessionState.AWAITING_ANSWER)
                self._say(e.message, question_id=question.id)
                self._say(question.prompt, question_id=question.id)
                return self._result(mark, accepted=False, error=e.message)

            self.events.append(EventKind.USER_ANSWER, display_text(value), question_id=question.id)

            self._transition(SessionState.PERSISTING)
            phase_was_done = self._phase_done(question.phase_id)
            outcome = self.store.record_answer(self.context, self.progress, question, value)
            if outcome.confirmed:
                self._flush_outbox()
            self._skipped.discard(question.id)
            if not phase_was_done and self._phase_done(question.phase_id):
                self.store.complete_phase(self.context, question.phase_id)

            self._advance()
            return self._result(mark, saved_remotely=outcome.confirmed)

    def _phase_done(self, phase_id: str) -> bool:
        phase = self.catalog.phase(phase_id)
        answered = self.answered_for_completion()
        return all(question_id in answered for question_id in phase.question_ids)

    def skip_question(self) -> TurnResult:
        """Pass over the current optional question for the rest of this session."""
        with self._guard("skip"):
            if self.state != SessionState.AWAITING_ANSWER or self.current_question is None:
                raise InvalidTransitionError(f"Nothing to skip in state {self.state.value}")
            mark = len(self.events)
            question = self.current_question

            if question.required:
                self._say(messages.required_skip_refused(), question_id=question.id)
                self._say(question.prompt, question_id=question.id)
                return self._result(mark, accepted=False, error=f"'{question.id}' is required")

            self._skipped.add(question.id)
            logger.info(f"Session {self.user_id} skipped {question.id}")
            self._say(messages.skipped(), question_id=question.id)
            self._advance()
            return self._result(mark)

    def delete_answer(self, question_id: str) -> TurnResult:
        """
        Remove a previously given answer and re-enter Advancing, which
        re-surfaces the question. The removal is local; any queued remote
        write for it is dropped.
        """
        with self._guard("delete an answer"):
            progress = self._require_started("delete an answer")
            self._question_or_raise(question_id)
            mark = len(self.events)

            if not self.store.delete_answer(self.context, progress, question_id):
                return self._result(mark, accepted=False, error=f"'{question_id}' has not been answered")

            self._skipped.discard(question_id)
            self.events.append(EventKind.ANSWER_DELETED, messages.answer_deleted(), question_id=question_id)
            logger.info(f"Session {self.user_id} deleted answer {question_id}")
            self._advance()
            return self._result(mark)

    def edit_answer(self, question_id: str, value: AnswerValue) -> TurnResult:
        """Replace an already answered value in place. Points are not awarded again."""
        with self._guard("edit an answer"):
            progress = self._require_started("edit an answer")
            question = self._question_or_raise(question_id)
            if not progress.has_answer(question_id):
                raise InvalidTransitionError(f"'{question_id}' has not been answered yet")

            mark = len(self.events)
            value = validate_answer(question, value)
            outcome = self.store.record_answer(self.context, progress, question, value)
            if outcome.confirmed:
                self._flush_outbox()
            self.events.append(EventKind.USER_ANSWER, display_text(value), question_id=question_id, edited=True)
            return self._result(mark, saved_remotely=outcome.confirmed)

    def abandon(self) -> None:
        """Close the session. Unsubmitted input is simply never persisted."""
        if self.closed:
            return
        with self._guard("abandon"):
            if self.state not in ABANDONABLE_STATES:
                raise InvalidTransitionError(f"Cannot abandon in state {self.state.value}")
            self.closed = True
            logger.info(f"Session {self.user_id} abandoned at {self.current_question.id if self.current_question else self.state.value}")

    def retry_pending(self) -> RetryReport:
        """
        Flush queued answer writes, then retry a deferred finalize. The
        finalize is only sent once every queued answer has been saved.
        """
        with self._guard("retry"):
            report = RetryReport(flushed_answers=self.store.flush_pending(self.context))

            if self.finalize_pending and self.state == SessionState.FINALIZING and not self._pending_writes():
                result = self.gateway.finalize(self.context)
                self.finalization = result
                report.finalize_attempted = True
                if result.success:
                    self.finalize_pending = False
                    self.store.mark_complete(self.progress, finalized=True)
                    self._say(messages.finalize_succeeded())
                report.finalized = result.success

            report.pending_answers = len(self.store.outbox_for(self.user_id))
            return report
