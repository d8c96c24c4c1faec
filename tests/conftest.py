import os

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from salarybench.main import app
from salarybench.core.database import Base, create_app_engine, get_db
from salarybench.core.limiter import limiter
from salarybench.models.compensation import CompensationData
from salarybench.services.ai_gateway import get_gateway

# In-memory SQLite — StaticPool ensures one shared DB across all connections
SQLALCHEMY_DATABASE_URL = "sqlite://"
engine = create_app_engine(SQLALCHEMY_DATABASE_URL, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    database = TestingSessionLocal()
    try:
        yield database
    finally:
        database.close()


class FakeGateway:
    """Stands in for AIGatewayClient; records what it was asked."""

    def __init__(self):
        self.calls = []
        self.reply = "## Market Position\nYou are paid well."
        self.chunks = [
            b'data: {"choices":[{"delta":{"content":"Hello"}}]}\n\n',
            b"data: [DONE]\n\n",
        ]
        self.error = None

    def complete(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply

    def stream(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return iter(self.chunks)


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable the burst limiter for all tests so rapid requests don't return 429."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def fake_gateway():
    return FakeGateway()


@pytest.fixture(scope="function")
def client(fake_gateway):
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


def make_submission(**overrides) -> CompensationData:
    """Build a compensation row with sensible defaults."""
    fields = dict(
        anonymous_id=uuid.uuid4(),
        job_title="Software Engineer",
        industry="IT",
        experience_level="mid",
        company_size="medium",
        city="Iași",
        gross_salary=Decimal("8000"),
        net_salary=Decimal("4680"),
        has_meal_vouchers=True,
        meal_vouchers_value=Decimal("40"),
        has_health_insurance=True,
        has_life_insurance=False,
    )
    fields.update(overrides)
    return CompensationData(**fields)


@pytest.fixture
def submission():
    return make_submission
