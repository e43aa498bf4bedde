"""
Pending-write outbox.

Answers are saved locally first; a remote save that fails lands here and
is retried later as a single batch. One entry per question id, last write
wins.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from onboarding.shared.hashing import canonicalize_and_hash
from .local_cache import LocalProgressCache
from .models import PendingWrite

logger = logging.getLogger(__name__)


class AnswerOutbox:
    def __init__(self, user_id: str, cache: Optional[LocalProgressCache] = None):
        self.user_id = user_id
        self._cache = cache
        self._pending: "OrderedDict[str, PendingWrite]" = OrderedDict()
        if cache is not None:
            for write in cache.load_pending(user_id):
                self._pending[write.question_id] = write

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._pending

    def idempotency_key(self, question_id: str, answer: Any) -> str:
        return canonicalize_and_hash({
            "user_id": self.user_id,
            "question_id": question_id,
            "answer": answer,
        })

    def pending(self) -> List[PendingWrite]:
        return list(self._pending.values())

    def enqueue(self, question_id: str, answer: Any, points: int, error: Optional[str] = None) -> PendingWrite:
        """Queue a failed save. Re-queuing the same payload bumps its attempt count."""
        key = self.idempotency_key(question_id, answer)
        previous = self._pending.pop(question_id, None)
        attempts = previous.attempts + 1 if previous is not None and previous.idempotency_key == key else 1

        write = PendingWrite(
            question_id=question_id,
            answer=answer,
            points=points,
            idempotency_key=key,
            attempts=attempts,
            last_error=error,
        )
        self._pending[question_id] = write
        if self._cache is not None:
            self._cache.save_pending(self.user_id, write)
        logger.info(f"Queued answer {question_id} for {self.user_id} (attempt {attempts})")
        return write

    def discard(self, question_id: str) -> bool:
        removed = self._pending.pop(question_id, None) is not None
        if removed and self._cache is not None:
            self._cache.delete_pending(self.user_id, [question_id])
        return removed

    def batch_payload(self) -> Dict[str, Any]:
        return {write.question_id: write.answer for write in self._pending.values()}

    def snapshot_keys(self) -> Dict[str, str]:
        return {write.question_id: write.idempotency_key for write in self._pending.values()}

    def mark_flushed(self, keys: Dict[str, str]) -> int:
        """Drop entries whose payload is unchanged since `keys` was taken."""
        flushed = [
            question_id
            for question_id, key in keys.items()
            if question_id in self._pending and self._pending[question_id].idempotency_key == key
        ]
        for question_id in flushed:
            del self._pending[question_id]
        if flushed and self._cache is not None:
            self._cache.delete_pending(self.user_id, flushed)
        return len(flushed)

    def record_failure(self, error: str) -> None:
        for question_id, write in list(self._pending.items()):
            updated = write.model_copy(update={"attempts": write.attempts + 1, "last_error": error})
            self._pending[question_id] = updated
            if self._cache is not None:
                self._cache.save_pending(self.user_id, updated)
