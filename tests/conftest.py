from __future__ import annotations

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from paymind.core.dependencies import get_db_session, get_generator_factory
from paymind.llm.client import TextGenerator
from paymind.llm.providers import AIProvider
from paymind.main import create_app
from paymind.models import Base


class FakeGenerator(TextGenerator):
    """Scripted generator; runs through the real ``generate`` checks."""

    provider = AIProvider.ANTHROPIC

    def __init__(self, responses=None, model: str = "fake-model", tokens: int | None = 42) -> None:
        super().__init__(model=model, api_key="test-key")
        self.responses = list(responses or [])
        self.tokens = tokens
        self.calls: list[tuple[str, str]] = []

    def _complete(self, system_prompt, user_prompt, max_tokens):
        self.calls.append((system_prompt, user_prompt))
        response = self.responses.pop(0) if self.responses else "Generated text"
        if isinstance(response, Exception):
            raise response
        return response, self.tokens


def invoice_row(invoice_id: str, days_ago: int = 0, **overrides) -> dict:
    row = {
        "invoice_id": invoice_id,
        "customer_name": f"Customer {invoice_id}",
        "amount_total": 500.0,
        "amount_paid": 0.0,
        "due_date": (date.today() - timedelta(days=days_ago)).isoformat(),
        "status": "open",
        "preferred_channel": "email",
        "customer_email": f"{invoice_id.lower()}@example.com",
        "customer_phone": "+39 000 0000",
    }
    row.update(overrides)
    return row


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def client(session_factory, fake_generator):
    app = create_app(run_bootstrap=False)

    def _override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = _override_db
    app.dependency_overrides[get_generator_factory] = lambda: (lambda *args, **kwargs: fake_generator)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_row():
    return invoice_row


@pytest.fixture
def generator_cls():
    return FakeGenerator
