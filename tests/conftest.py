"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from cycles_gateway.api.main import create_app
from cycles_gateway.infrastructure.database.models import Base
from cycles_gateway.infrastructure.database.session import get_db
from cycles_gateway.domain.models import Cycle, Obligation, ObligationKind, Recurrence, Transaction


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def car_loan() -> Obligation:
    """Monthly liability: $1000 due on the 1st, $800 minimum, 3-day window"""
    return Obligation(
        obligation_id="liab-1",
        kind=ObligationKind.LIABILITY,
        title="Car loan",
        start_date=date(2024, 1, 15),
        recurrence=Recurrence(frequency="monthly"),
        amount=1000.0,
        minimum_amount=800.0,
        due_day=1,
        tolerance_days=3,
    )


@pytest.fixture
def car_loan_payload() -> dict:
    """JSON body for POST /v1/cycles matching the car_loan fixture"""
    return {
        "obligation": {
            "obligation_id": "liab-1",
            "kind": "liability",
            "title": "Car loan",
            "start_date": "2024-01-15",
            "recurrence": {"frequency": "monthly"},
            "amount": 1000,
            "minimum_amount": 800,
            "due_day": 1,
            "tolerance_days": 3,
        },
        "transactions": [],
        "bills": [],
        "as_of": "2024-02-10",
    }


@pytest.fixture
def payment():
    """Factory for dated payments"""

    def _payment(transaction_id: str, amount: float, when: date, **metadata) -> Transaction:
        return Transaction(transaction_id=transaction_id, amount=amount, date=when, metadata=dict(metadata))

    return _payment


@pytest.fixture
def make_cycle():
    """Factory for a cycle shell due 2024-02-01: $1000 target, $800 minimum, 3-day window, as of 2024-02-10"""

    def _make_cycle(**overrides) -> Cycle:
        fields = dict(
            cycle_number=1,
            start_date=date(2024, 1, 15),
            end_date=date(2024, 2, 14),
            expected_date=date(2024, 2, 1),
            expected_amount=1000.0,
            minimum_amount=800.0,
            obligation_kind=ObligationKind.LIABILITY,
            tolerance_days=3,
            as_of=date(2024, 2, 10),
        )
        fields.update(overrides)
        return Cycle(**fields)

    return _make_cycle
