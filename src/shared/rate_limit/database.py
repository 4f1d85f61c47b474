"""Database-backed rate limiting that works across multiple server instances."""

import logging
import time
from threading import Lock
from typing import Optional

from sqlalchemy import create_engine, Column, String, Integer, Float
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from src.shared.rate_limit.limiter import (
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS,
    RATE_LIMIT_WINDOW_SECONDS,
    Clock,
    RateLimitResult,
    _check_client_key,
    _validate_limits,
)

Base = declarative_base()


class RateLimitEntry(Base):
    """Current window for one client key."""
    __tablename__ = "rate_limit_records"

    client_key = Column(String, primary_key=True)  # IP address
    count = Column(Integer, nullable=False, default=0)
    reset_time = Column(Float, nullable=False, index=True)  # epoch seconds


def create_session_factory(database_url: str) -> sessionmaker:
    """Create the engine for `database_url` and make sure the table exists."""
    # Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }
    engine = create_engine(database_url, **engine_kwargs)
    Base.metadata.create_all(bind=engine, checkfirst=True)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class DatabaseRateLimiter:
    """
    Fixed-window rate limiter storing its windows in a SQL table.

    Same contract as RateLimiter. The row is locked for the duration of the
    read-modify-write (SELECT ... FOR UPDATE where the database supports it),
    and checks from this process are additionally serialized. Expired rows
    are deleted during checks at most once per `sweep_interval` seconds.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Clock = time.time,
        sweep_interval: float = RATE_LIMIT_SWEEP_INTERVAL_SECONDS,
    ):
        _validate_limits(max_requests, window_seconds)
        self.session_factory = session_factory
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._sweep_interval = sweep_interval
        self._lock = Lock()
        self._last_sweep = clock()

    def check(self, client_key: str) -> RateLimitResult:
        _check_client_key(client_key)
        now = self.clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)
                self._last_sweep = now

            try:
                return self._record_request(client_key, now)
            except IntegrityError:
                # Another instance created the row first; its row is now visible
                logging.info(f"Rate limit row for {client_key} created concurrently, retrying")
                return self._record_request(client_key, now)

    def _record_request(self, client_key: str, now: float) -> RateLimitResult:
        db = self.session_factory()
        try:
            entry = (
                db.query(RateLimitEntry)
                .filter(RateLimitEntry.client_key == client_key)
                .with_for_update()
                .one_or_none()
            )
            if entry is None:
                entry = RateLimitEntry(client_key=client_key, count=1, reset_time=now + self.window_seconds)
                db.add(entry)
            elif now > entry.reset_time:
                entry.count = 1
                entry.reset_time = now + self.window_seconds
            else:
                entry.count = entry.count + 1

            count, reset_time = entry.count, entry.reset_time
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

        return RateLimitResult(
            allowed=count <= self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_time=reset_time,
        )

    def purge_expired(self) -> int:
        """Delete rows whose window has passed. Returns how many were deleted."""
        return self._delete_expired(self.clock())

    def _sweep(self, now: float) -> None:
        # A failed cleanup must not fail the request being counted
        try:
            deleted = self._delete_expired(now)
            if deleted:
                logging.info(f"Removed {deleted} expired rate limit entries")
        except SQLAlchemyError as e:
            logging.warning(f"Failed to clean up expired rate limit entries: {str(e)}")

    def _delete_expired(self, now: float) -> int:
        db = self.session_factory()
        try:
            deleted = db.query(RateLimitEntry).filter(RateLimitEntry.reset_time < now).delete()
            db.commit()
            return deleted
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def reset(self, client_key: Optional[str] = None) -> None:
        db = self.session_factory()
        try:
            query = db.query(RateLimitEntry)
            if client_key is not None:
                query = query.filter(RateLimitEntry.client_key == client_key)
            query.delete()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()
