"""
Fixed-window rate limiting backed by the ``rate_limits`` table.

Each (identity, endpoint) pair owns one row. A window opens on the first
request, admits ``max_requests`` requests, and closes ``window_hours`` later.
The next request after that starts a fresh window.

The check never reads a row and then writes it back. Every state change is a
single conditional UPDATE (or an INSERT guarded by the unique constraint), so
two workers cannot both slip under the limit. Inside one process, checks for
the same key are also serialized by a striped lock table.

Storage errors fail closed: the caller gets ``RateLimitCheckFailed`` and must
not run the protected operation.
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence, Union

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from salarybench.models.rate_limit import RateLimitRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_HOURS = 20

_LOCK_STRIPES = 64
_MAX_PASSES = 3
_process_locks = tuple(threading.Lock() for _ in range(_LOCK_STRIPES))


class RateLimitCheckFailed(Exception):
    """The backing store could not answer. Treat as a retryable server error."""


@dataclass(frozen=True)
class Allowed:
    request_count: int


@dataclass(frozen=True)
class Denied:
    retry_after_hours: int


Decision = Union[Allowed, Denied]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


class FixedWindowRateLimiter:
    def __init__(
        self,
        db: Session,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_hours: float = DEFAULT_WINDOW_HOURS,
        cleanup: bool = True,
        locks: Optional[Sequence[threading.Lock]] = None,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_hours <= 0:
            raise ValueError("window_hours must be greater than 0")

        self.db = db
        self.max_requests = max_requests
        self.window_hours = window_hours
        self.window = timedelta(hours=window_hours)
        self.cleanup = cleanup
        self._locks = locks if locks is not None else _process_locks

    def _lock_for(self, identity: str, endpoint: str) -> threading.Lock:
        return self._locks[hash((identity, endpoint)) % len(self._locks)]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_and_record(
        self, identity: str, endpoint: str, now: Optional[datetime] = None
    ) -> Decision:
        """
        Decide whether ``identity`` may call ``endpoint`` right now.

        Allowed outcomes create or update exactly one row and commit.
        Denied outcomes leave the row untouched.
        Raises RateLimitCheckFailed on any storage error.
        """
        now = _as_naive_utc(now) if now is not None else _utc_now()

        with self._lock_for(identity, endpoint):
            # A second attempt covers losing a first-insert race to another worker.
            for attempt in range(2):
                try:
                    decision = self._check(identity, endpoint, now)
                    self.db.commit()
                    break
                except IntegrityError:
                    self.db.rollback()
                    logger.info(
                        "Concurrent first request, retrying (attempt %d)",
                        attempt + 1,
                        extra={"identity": identity, "endpoint": endpoint},
                    )
                except RateLimitCheckFailed:
                    self.db.rollback()
                    logger.error(
                        "Rate limit record changed on every pass",
                        extra={"identity": identity, "endpoint": endpoint},
                    )
                    raise
                except SQLAlchemyError as exc:
                    self.db.rollback()
                    logger.error(
                        "Rate limit check failed: %s",
                        exc,
                        extra={"identity": identity, "endpoint": endpoint},
                    )
                    raise RateLimitCheckFailed("Rate limit check failed") from exc
            else:
                raise RateLimitCheckFailed("Rate limit record could not be created")

        if isinstance(decision, Denied):
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "identity": identity,
                    "endpoint": endpoint,
                    "retry_after_hours": decision.retry_after_hours,
                },
            )
        else:
            logger.debug(
                "Rate limit check passed",
                extra={
                    "identity": identity,
                    "endpoint": endpoint,
                    "request_count": decision.request_count,
                },
            )
        return decision

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Delete rows whose window started more than ``window_hours`` ago."""
        now = _as_naive_utc(now) if now is not None else _utc_now()
        try:
            deleted = self._sweep(now)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RateLimitCheckFailed("Rate limit sweep failed") from exc
        return deleted

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _sweep(self, now: datetime) -> int:
        result = self.db.execute(
            delete(RateLimitRecord)
            .where(RateLimitRecord.window_start < now - self.window)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def _check(self, identity: str, endpoint: str, now: datetime) -> Decision:
        if self.cleanup:
            self._sweep(now)

        cutoff = now - self.window
        key = (
            RateLimitRecord.identity == identity,
            RateLimitRecord.endpoint == endpoint,
        )

        # The row can change between statements when another worker resets or
        # fills it; the updates are re-run against whatever it holds now.
        for _ in range(_MAX_PASSES):
            # Open window with room left: count + 1
            opened = self.db.execute(
                update(RateLimitRecord)
                .where(
                    *key,
                    RateLimitRecord.window_start > cutoff,
                    RateLimitRecord.request_count < self.max_requests,
                )
                .values(
                    request_count=RateLimitRecord.request_count + 1,
                    last_request_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if opened.rowcount == 1:
                return Allowed(request_count=self._current_count(identity, endpoint))

            # Window expired: start a new one
            reset = self.db.execute(
                update(RateLimitRecord)
                .where(*key, RateLimitRecord.window_start <= cutoff)
                .values(request_count=1, window_start=now, last_request_at=now)
                .execution_options(synchronize_session=False)
            )
            if reset.rowcount == 1:
                return Allowed(request_count=1)

            row = self.db.execute(
                select(RateLimitRecord.window_start, RateLimitRecord.request_count).where(*key)
            ).one_or_none()
            if row is None:
                break
            window_start, request_count = row
            if window_start > cutoff and request_count >= self.max_requests:
                elapsed_hours = (now - window_start).total_seconds() / 3600
                return Denied(retry_after_hours=math.ceil(self.window_hours - elapsed_hours))
        else:
            raise RateLimitCheckFailed("Rate limit record kept changing")

        # First request for this key. The unique constraint turns a concurrent
        # duplicate insert into an IntegrityError, handled by the caller.
        self.db.add(
            RateLimitRecord(
                identity=identity,
                endpoint=endpoint,
                request_count=1,
                window_start=now,
                last_request_at=now,
            )
        )
        self.db.flush()
        return Allowed(request_count=1)

    def _current_count(self, identity: str, endpoint: str) -> int:
        return self.db.execute(
            select(RateLimitRecord.request_count).where(
                RateLimitRecord.identity == identity,
                RateLimitRecord.endpoint == endpoint,
            )
        ).scalar_one()
