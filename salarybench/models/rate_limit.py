from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, Index

from salarybench.core.database import Base


class RateLimitRecord(Base):
    """One fixed-window counter per (identity, endpoint) pair."""

    __tablename__ = "rate_limits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity = Column(String(255), nullable=False)  # client IP
    endpoint = Column(String(100), nullable=False)
    request_count = Column(Integer, default=1, nullable=False)
    # Naive UTC timestamps
    window_start = Column(DateTime, nullable=False)
    last_request_at = Column(DateTime, nullable=False)

    __table_args__ = (
        # Concurrent first requests must not create two counters for one key.
        UniqueConstraint("identity", "endpoint", name="uq_rate_limits_identity_endpoint"),
        Index("ix_rate_limits_window_start", "window_start"),
    )

    def __repr__(self) -> str:
        return f"<RateLimitRecord {self.identity}:{self.endpoint} count={self.request_count}>"
