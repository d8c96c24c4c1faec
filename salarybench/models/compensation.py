import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Uuid

from salarybench.core.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CompensationData(Base):
    """An anonymized salary submission. Read-only from the API's point of view."""

    __tablename__ = "compensation_data"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    anonymous_id = Column(Uuid(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4)

    job_title = Column(String, nullable=False)
    industry = Column(String, nullable=False)
    experience_level = Column(String, nullable=False, index=True)  # junior, mid, senior, lead
    company_size = Column(String, nullable=False)
    city = Column(String, nullable=False, index=True)
    country = Column(String, default="Romania", nullable=False)

    # Monthly amounts in RON
    gross_salary = Column(Numeric(12, 2), nullable=False)
    net_salary = Column(Numeric(12, 2), nullable=False)

    has_meal_vouchers = Column(Boolean, nullable=True)
    meal_vouchers_value = Column(Numeric(8, 2), nullable=True)  # per working day
    has_health_insurance = Column(Boolean, nullable=True)
    has_life_insurance = Column(Boolean, nullable=True)

    contract_type = Column(String, nullable=True)
    work_model = Column(String, nullable=True)
    schedule = Column(String, nullable=True)
    paid_leave_days = Column(Integer, nullable=True)
    tenure_years = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=_utc_now, nullable=False)
