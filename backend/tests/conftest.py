from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, delete

from walklog_billing.api.deps import get_db
from walklog_billing.main import app
from walklog_billing.models import BillingWebhookEvent, User, UserProfile
from walklog_billing.services.revenuecat_service import (
    RevenueCatWebhookProcessor,
    get_revenuecat_webhook_processor,
)

WEBHOOK_TOKEN = "test-webhook-token"


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
        # Clean tables after each test (children first).
        session.rollback()
        session.exec(delete(BillingWebhookEvent))
        session.exec(delete(UserProfile))
        session.exec(delete(User))
        session.commit()


@pytest.fixture(scope="function")
def processor() -> RevenueCatWebhookProcessor:
    return RevenueCatWebhookProcessor(WEBHOOK_TOKEN)


@pytest.fixture(scope="function")
def client(engine, db, processor) -> Generator[TestClient, None, None]:
    def _override_get_db() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_revenuecat_webhook_processor] = lambda: processor
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> dict[str, str]:
    return {"Authorization": f"Bearer {WEBHOOK_TOKEN}"}
