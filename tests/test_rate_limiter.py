"""
Tests for services/rate_limiter.py.

Strategy
--------
* Sequential behaviour runs against the shared in-memory SQLite ``db``
  fixture with explicit ``now`` values, so window arithmetic is exact.
* The race tests use a file-backed SQLite database so every thread gets its
  own connection, then fire K checks through a barrier at a key that has one
  request left.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from salarybench.core.database import Base, create_app_engine
from salarybench.models.rate_limit import RateLimitRecord
from salarybench.services.rate_limiter import (
    Allowed,
    Denied,
    FixedWindowRateLimiter,
    RateLimitCheckFailed,
)

T0 = datetime(2025, 3, 1, 8, 0, 0)
IP = "1.2.3.4"
CHAT = "chat"


def _hours(n: float) -> datetime:
    return T0 + timedelta(hours=n)


def _record(db, identity=IP, endpoint=CHAT):
    db.expire_all()
    return (
        db.query(RateLimitRecord)
        .filter_by(identity=identity, endpoint=endpoint)
        .one_or_none()
    )


@pytest.fixture
def rate_limiter(db):
    return FixedWindowRateLimiter(db, max_requests=10, window_hours=20)


# ──────────────────────────────────────────────────────────────────────────────
# Window behaviour
# ──────────────────────────────────────────────────────────────────────────────


def test_first_request_creates_record(rate_limiter, db):
    assert rate_limiter.check_and_record(IP, CHAT, now=T0) == Allowed(request_count=1)

    record = _record(db)
    assert record.request_count == 1
    assert record.window_start == T0
    assert record.last_request_at == T0


def test_eleventh_request_in_window_is_denied(rate_limiter, db):
    assert isinstance(rate_limiter.check_and_record(IP, CHAT, now=T0), Allowed)
    for expected in range(2, 11):
        decision = rate_limiter.check_and_record(IP, CHAT, now=_hours(1))
        assert decision == Allowed(request_count=expected)

    decision = rate_limiter.check_and_record(IP, CHAT, now=_hours(2))

    assert decision == Denied(retry_after_hours=18)
    assert _record(db).request_count == 10


def test_denied_request_does_not_touch_the_record(rate_limiter, db):
    for _ in range(10):
        rate_limiter.check_and_record(IP, CHAT, now=_hours(1))

    rate_limiter.check_and_record(IP, CHAT, now=_hours(3))

    record = _record(db)
    assert record.request_count == 10
    assert record.window_start == _hours(1)
    assert record.last_request_at == _hours(1)


def test_retry_after_rounds_up(rate_limiter):
    for _ in range(10):
        rate_limiter.check_and_record(IP, CHAT, now=T0)

    assert rate_limiter.check_and_record(IP, CHAT, now=_hours(2.5)) == Denied(
        retry_after_hours=18
    )
    assert rate_limiter.check_and_record(IP, CHAT, now=_hours(19.9)) == Denied(
        retry_after_hours=1
    )


def test_expired_window_resets_count(rate_limiter, db):
    rate_limiter.check_and_record(IP, CHAT, now=T0)

    assert rate_limiter.check_and_record(IP, CHAT, now=_hours(21)) == Allowed(
        request_count=1
    )

    record = _record(db)
    assert record.request_count == 1
    assert record.window_start == _hours(21)


def test_window_expires_exactly_at_boundary(rate_limiter, db):
    for _ in range(10):
        rate_limiter.check_and_record(IP, CHAT, now=T0)

    assert rate_limiter.check_and_record(IP, CHAT, now=_hours(20)) == Allowed(
        request_count=1
    )
    assert _record(db).window_start == _hours(20)


def test_expired_window_resets_even_without_cleanup(db):
    rate_limiter = FixedWindowRateLimiter(db, max_requests=2, window_hours=20, cleanup=False)
    rate_limiter.check_and_record(IP, CHAT, now=T0)
    rate_limiter.check_and_record(IP, CHAT, now=T0)

    assert rate_limiter.check_and_record(IP, CHAT, now=_hours(25)) == Allowed(
        request_count=1
    )
    assert _record(db).window_start == _hours(25)


def test_timezone_aware_now_is_normalized_to_utc(rate_limiter, db):
    aware = T0.replace(tzinfo=timezone.utc)
    rate_limiter.check_and_record(IP, CHAT, now=aware)
    rate_limiter.check_and_record(IP, CHAT, now=T0 + timedelta(minutes=5))

    record = _record(db)
    assert record.window_start == T0
    assert record.request_count == 2


def _reset_by_another_worker(db, monkeypatch, now, request_count):
    """Rewrite the row right after the limiter's first statement runs."""
    real_execute = db.execute
    statements = []

    def execute(statement, *args, **kwargs):
        result = real_execute(statement, *args, **kwargs)
        statements.append(statement)
        if len(statements) == 1:
            real_execute(
                update(RateLimitRecord)
                .where(RateLimitRecord.identity == IP, RateLimitRecord.endpoint == CHAT)
                .values(request_count=request_count, window_start=now, last_request_at=now)
            )
        return result

    monkeypatch.setattr(db, "execute", execute)


def test_window_reset_by_another_worker_is_still_counted(db, monkeypatch):
    rate_limiter = FixedWindowRateLimiter(db, max_requests=10, window_hours=20, cleanup=False)
    for _ in range(3):
        rate_limiter.check_and_record(IP, CHAT, now=T0)
    now = _hours(20)
    _reset_by_another_worker(db, monkeypatch, now, request_count=1)

    assert rate_limiter.check_and_record(IP, CHAT, now=now) == Allowed(request_count=2)

    record = _record(db)
    assert record.request_count == 2
    assert record.window_start == now


def test_window_filled_by_another_worker_is_denied(db, monkeypatch):
    rate_limiter = FixedWindowRateLimiter(db, max_requests=10, window_hours=20, cleanup=False)
    rate_limiter.check_and_record(IP, CHAT, now=T0)
    now = _hours(20)
    _reset_by_another_worker(db, monkeypatch, now, request_count=10)

    assert rate_limiter.check_and_record(IP, CHAT, now=now) == Denied(retry_after_hours=20)
    assert _record(db).request_count == 10


# ──────────────────────────────────────────────────────────────────────────────
# Independence of keys
# ──────────────────────────────────────────────────────────────────────────────


def test_endpoints_and_identities_are_counted_separately(rate_limiter, db):
    for _ in range(10):
        rate_limiter.check_and_record(IP, CHAT, now=T0)
    assert isinstance(rate_limiter.check_and_record(IP, CHAT, now=T0), Denied)

    assert rate_limiter.check_and_record(IP, "other", now=T0) == Allowed(request_count=1)
    assert rate_limiter.check_and_record("5.6.7.8", CHAT, now=T0) == Allowed(
        request_count=1
    )
    assert _record(db).request_count == 10


# ──────────────────────────────────────────────────────────────────────────────
# Cleanup sweep
# ──────────────────────────────────────────────────────────────────────────────


def test_check_sweeps_stale_records_of_other_clients(rate_limiter, db):
    rate_limiter.check_and_record("9.9.9.9", CHAT, now=T0)

    rate_limiter.check_and_record(IP, CHAT, now=_hours(21))

    assert _record(db, identity="9.9.9.9") is None


def test_check_without_cleanup_keeps_stale_records(db):
    rate_limiter = FixedWindowRateLimiter(db, cleanup=False)
    rate_limiter.check_and_record("9.9.9.9", CHAT, now=T0)

    rate_limiter.check_and_record(IP, CHAT, now=_hours(21))

    assert _record(db, identity="9.9.9.9") is not None


def test_sweep_expired_deletes_only_old_windows(rate_limiter, db):
    rate_limiter.check_and_record("old", CHAT, now=T0)
    rate_limiter.check_and_record("recent", CHAT, now=_hours(10))

    assert rate_limiter.sweep_expired(now=_hours(25)) == 1
    assert _record(db, identity="old") is None
    assert _record(db, identity="recent") is not None


# ──────────────────────────────────────────────────────────────────────────────
# Configuration and failure handling
# ──────────────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("kwargs", [{"max_requests": 0}, {"window_hours": 0}])
def test_invalid_configuration_is_rejected(kwargs):
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(MagicMock(), **kwargs)


def test_storage_failure_fails_closed():
    session = MagicMock()
    session.execute.side_effect = OperationalError(
        "DELETE FROM rate_limits", {}, Exception("connection refused")
    )
    rate_limiter = FixedWindowRateLimiter(session)

    with pytest.raises(RateLimitCheckFailed):
        rate_limiter.check_and_record(IP, CHAT, now=T0)

    session.rollback.assert_called_once()
    session.commit.assert_not_called()


def test_record_that_never_settles_fails_closed():
    # Every update misses, yet the row always reads back open and below the limit
    result = MagicMock(rowcount=0)
    result.one_or_none.return_value = (T0, 1)
    session = MagicMock()
    session.execute.return_value = result
    rate_limiter = FixedWindowRateLimiter(session, cleanup=False)

    with pytest.raises(RateLimitCheckFailed):
        rate_limiter.check_and_record(IP, CHAT, now=_hours(1))

    session.rollback.assert_called_once()
    session.commit.assert_not_called()


def test_sweep_failure_is_reported():
    session = MagicMock()
    session.execute.side_effect = OperationalError("DELETE", {}, Exception("down"))

    with pytest.raises(RateLimitCheckFailed):
        FixedWindowRateLimiter(session).sweep_expired(now=T0)


# ──────────────────────────────────────────────────────────────────────────────
# Concurrency
# ──────────────────────────────────────────────────────────────────────────────

K = 8
MAX = 5


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_app_engine(f"sqlite:///{tmp_path / 'rate_limits.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _race(Session, make_locks):
    """Run K simultaneous checks; returns each thread's decision or error."""
    barrier = threading.Barrier(K)

    def attempt(_):
        session = Session()
        try:
            rate_limiter = FixedWindowRateLimiter(
                session, max_requests=MAX, window_hours=20, locks=make_locks()
            )
            barrier.wait()
            return rate_limiter.check_and_record(IP, CHAT, now=_hours(1))
        except RateLimitCheckFailed as exc:
            return exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=K) as pool:
        return list(pool.map(attempt, range(K)))


def _count(Session):
    session = Session()
    try:
        record = session.query(RateLimitRecord).filter_by(identity=IP, endpoint=CHAT).one()
        return record.request_count
    finally:
        session.close()


def _fill_to_one_below_limit(Session):
    session = Session()
    try:
        rate_limiter = FixedWindowRateLimiter(session, max_requests=MAX, window_hours=20)
        for _ in range(MAX - 1):
            rate_limiter.check_and_record(IP, CHAT, now=T0)
    finally:
        session.close()


def test_concurrent_checks_in_one_process_admit_exactly_one(file_sessions):
    _fill_to_one_below_limit(file_sessions)
    shared_locks = [threading.Lock() for _ in range(4)]

    outcomes = _race(file_sessions, lambda: shared_locks)

    allowed = [o for o in outcomes if isinstance(o, Allowed)]
    denied = [o for o in outcomes if isinstance(o, Denied)]
    assert len(allowed) == 1
    assert len(denied) == K - 1
    assert _count(file_sessions) == MAX


def test_concurrent_checks_across_workers_never_overshoot(file_sessions):
    """Separate lock tables stand in for separate worker processes."""
    _fill_to_one_below_limit(file_sessions)

    outcomes = _race(file_sessions, lambda: [threading.Lock()])

    allowed = [o for o in outcomes if isinstance(o, Allowed)]
    assert len(allowed) <= 1
    # Anything not admitted was either denied or failed closed
    assert all(isinstance(o, (Allowed, Denied, RateLimitCheckFailed)) for o in outcomes)
    assert _count(file_sessions) == MAX - 1 + len(allowed)


def test_concurrent_first_requests_create_one_record(file_sessions):
    Session = file_sessions
    barrier = threading.Barrier(K)

    def attempt(_):
        session = Session()
        try:
            rate_limiter = FixedWindowRateLimiter(
                session, max_requests=1, window_hours=20, locks=[threading.Lock()]
            )
            barrier.wait()
            return rate_limiter.check_and_record(IP, CHAT, now=T0)
        except RateLimitCheckFailed as exc:
            return exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=K) as pool:
        outcomes = list(pool.map(attempt, range(K)))

    assert sum(isinstance(o, Allowed) for o in outcomes) == 1
    assert sum(isinstance(o, Denied) for o in outcomes) == K - 1
    session = Session()
    try:
        assert session.query(RateLimitRecord).count() == 1
    finally:
        session.close()
