"""Allocate human-facing display ids (REQ-0001) from named counters."""
import time
from typing import Optional

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from core.errors import SequenceUnavailable
from core.logger import logger
from database.models import Counter
import config

DISPLAY_PREFIX = "REQ-"


def format_display_id(value: int) -> str:
    """REQ- prefix plus the value zero-padded to four digits."""
    return f"{DISPLAY_PREFIX}{value:04d}"


class SequenceGenerator:
    """
    Strictly increasing ids per key, safe across threads and service instances.

    Each allocation is one transaction: create the counter row at 0 if missing,
    then ``UPDATE ... SET value = value + 1 RETURNING value``. The row lock taken
    by the update serializes concurrent callers, so no two callers observe the
    same value. An allocation whose record is never written leaves a gap; gaps
    are acceptable, duplicates are not.
    """

    def __init__(self, database, max_retries: Optional[int] = None, backoff_ms: Optional[int] = None):
        self.database = database
        self.max_retries = max(1, max_retries if max_retries is not None else config.SEQUENCE_MAX_RETRIES)
        self.backoff_ms = backoff_ms if backoff_ms is not None else config.SEQUENCE_RETRY_BACKOFF_MS

    def next(self, key: str = config.REQUEST_SEQUENCE_KEY) -> str:
        """Allocate the next display id for ``key``."""
        return format_display_id(self.next_value(key))

    def next_value(self, key: str) -> int:
        last_error = None
        for attempt in range(1, self.max_retries + 1):
            try:
                with self.database.get_session() as session:
                    self._ensure_counter(session, key)
                    value = session.execute(
                        update(Counter)
                        .where(Counter.key == key)
                        .values(value=Counter.value + 1)
                        .returning(Counter.value)
                    ).scalar_one()
                return value
            except DBAPIError as e:
                last_error = e
                logger.warning(
                    f"Sequence '{key}' allocation attempt {attempt}/{self.max_retries} failed: {e.__class__.__name__}"
                )
                if attempt < self.max_retries:
                    time.sleep(self.backoff_ms * attempt / 1000.0)

        logger.error(f"Sequence '{key}' unavailable after {self.max_retries} attempts: {last_error}")
        raise SequenceUnavailable()

    @staticmethod
    def _ensure_counter(session: Session, key: str) -> None:
        """Insert the counter row at 0 unless it already exists."""
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            session.execute(
                pg_insert(Counter).values(key=key, value=0).on_conflict_do_nothing(index_elements=[Counter.key])
            )
        elif dialect == "sqlite":
            session.execute(
                sqlite_insert(Counter).values(key=key, value=0).on_conflict_do_nothing(index_elements=[Counter.key])
            )
        elif session.get(Counter, key) is None:
            try:
                with session.begin_nested():
                    session.add(Counter(key=key, value=0))
            except IntegrityError:
                # Created concurrently by another caller
                pass
