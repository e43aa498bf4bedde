"""
Device-Local Progress Cache
===========================
Keeps the last known ProgressState and the pending-write outbox per user
so that unconfirmed answers survive an application restart.

Backed by SQLAlchemy Core; SQLite by default (ONBOARDING_CACHE_URL).
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from onboarding import config
from .models import PendingWrite, ProgressState

logger = logging.getLogger(__name__)

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class LocalProgressCache:
    def __init__(self, url: Optional[str] = None):
        self.url = url or config.ONBOARDING_CACHE_URL
        if self.url in IN_MEMORY_URLS:
            # One shared connection, otherwise every checkout sees an empty database
            self.engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(self.url)
        self._ensure_tables()

    def _ensure_tables(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS onboarding_progress (
                    user_id VARCHAR(255) PRIMARY KEY,
                    state_json TEXT NOT NULL,
                    updated_at VARCHAR(40)
                )
            """))
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS onboarding_outbox (
                    user_id VARCHAR(255) NOT NULL,
                    question_id VARCHAR(255) NOT NULL,
                    payload_json TEXT NOT NULL,
                    idempotency_key VARCHAR(80) NOT NULL,
                    enqueued_at VARCHAR(40),
                    PRIMARY KEY (user_id, question_id)
                )
            """))

    # ===== Progress snapshot =====

    def save_state(self, state: ProgressState) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO onboarding_progress (user_id, state_json, updated_at)
                    VALUES (:user_id, :state_json, :updated_at)
                    ON CONFLICT (user_id) DO UPDATE SET
                        state_json = excluded.state_json,
                        updated_at = excluded.updated_at
                """),
                {
                    "user_id": state.user_id,
                    "state_json": state.model_dump_json(),
                    "updated_at": state.updated_at,
                },
            )

    def load_state(self, user_id: str) -> Optional[ProgressState]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT state_json FROM onboarding_progress WHERE user_id = :user_id"),
                {"user_id": user_id},
            ).fetchone()
        if row is None:
            return None
        try:
            return ProgressState.model_validate_json(row[0])
        except ValueError as e:
            logger.warning(f"Discarding unreadable cached progress for {user_id}: {e}")
            return None

    # ===== Outbox =====

    def save_pending(self, user_id: str, write: PendingWrite) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO onboarding_outbox (user_id, question_id, payload_json, idempotency_key, enqueued_at)
                    VALUES (:user_id, :question_id, :payload_json, :idempotency_key, :enqueued_at)
                    ON CONFLICT (user_id, question_id) DO UPDATE SET
                        payload_json = excluded.payload_json,
                        idempotency_key = excluded.idempotency_key,
                        enqueued_at = excluded.enqueued_at
                """),
                {
                    "user_id": user_id,
                    "question_id": write.question_id,
                    "payload_json": write.model_dump_json(),
                    "idempotency_key": write.idempotency_key,
                    "enqueued_at": write.enqueued_at,
                },
            )

    def load_pending(self, user_id: str) -> List[PendingWrite]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                text("""
                    SELECT payload_json FROM onboarding_outbox
                    WHERE user_id = :user_id
                    ORDER BY enqueued_at, question_id
                """),
                {"user_id": user_id},
            ).fetchall()
        writes = []
        for row in rows:
            try:
                writes.append(PendingWrite.model_validate_json(row[0]))
            except ValueError as e:
                logger.warning(f"Dropping unreadable outbox entry for {user_id}: {e}")
        return writes

    def delete_pending(self, user_id: str, question_ids: Iterable[str]) -> None:
        ids = list(question_ids)
        if not ids:
            return
        with self.engine.begin() as conn:
            for question_id in ids:
                conn.execute(
                    text("DELETE FROM onboarding_outbox WHERE user_id = :user_id AND question_id = :question_id"),
                    {"user_id": user_id, "question_id": question_id},
                )
