"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Generator, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from hockey_gateway.api.main import create_app
from hockey_gateway.api.dependencies import get_scheduler_client
from hockey_gateway.infrastructure.database.models import (
    Base,
    DiscountCategoryRecord,
    DiscountCodeRecord,
    Registration,
    Season,
)
from hockey_gateway.infrastructure.database.session import get_db
from hockey_gateway.domain.models import DiscountCategory, DiscountCode


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeCodes:
    """In-memory DiscountCodeLookup that counts lookups"""

    def __init__(self, *codes: DiscountCode):
        self.codes = {code.code: code for code in codes}
        self.calls = 0

    def get_by_code(self, code: str) -> Optional[DiscountCode]:
        self.calls += 1
        return self.codes.get(code)


class FakeUsageLedger:
    """In-memory CodeUsageCounter + SeasonalUsageLedger that counts queries"""

    def __init__(
        self,
        code_uses: Optional[Dict[Tuple[str, str], int]] = None,
        season_totals: Optional[Dict[Tuple[str, str, str], int]] = None,
    ):
        self.code_uses = code_uses or {}
        self.season_totals = season_totals or {}
        self.code_use_calls = 0
        self.total_used_calls = 0

    def count_code_uses(self, user_id: str, discount_code_id: str) -> int:
        self.code_use_calls += 1
        return self.code_uses.get((user_id, discount_code_id), 0)

    def total_used(self, user_id: str, discount_category_id: str, season_id: str) -> int:
        self.total_used_calls += 1
        return self.season_totals.get((user_id, discount_category_id, season_id), 0)


@pytest.fixture
def scholarship_category() -> DiscountCategory:
    """Category with a $100 season cap"""
    return DiscountCategory(
        id="cat_scholarship",
        name="Scholarship",
        accounting_code="400-DISC",
        max_discount_per_user_per_season=10000,
    )


@pytest.fixture
def test50_code(scholarship_category: DiscountCategory) -> DiscountCode:
    return DiscountCode(
        id="code_test50",
        code="TEST50",
        percentage=Decimal("50"),
        category=scholarship_category,
    )


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
def scheduler() -> MagicMock:
    """Stand-in scheduler client; send_plan_created is awaited by background tasks"""
    client = MagicMock()
    client.send_plan_created = AsyncMock(return_value=None)
    return client


@pytest.fixture
def client(db: Session, scheduler: MagicMock) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduler_client] = lambda: scheduler
    return TestClient(app)


@pytest.fixture
def seeded(db: Session) -> Dict[str, str]:
    """Season 2025-26 with a $50 registration, a capped category and three codes"""
    season = Season(id="season_2025", name="2025-26")
    registration = Registration(
        id="reg_rec_league",
        season_id=season.id,
        name="Rec League",
        price_cents=5000,
        alternate_price_cents=2000,
    )
    capped = DiscountCategoryRecord(
        id="cat_scholarship",
        name="Scholarship",
        accounting_code="400-DISC",
        max_discount_per_user_per_season=10000,
    )
    uncapped = DiscountCategoryRecord(
        id="cat_volunteer",
        name="Volunteer",
        accounting_code="401-VOL",
        max_discount_per_user_per_season=None,
    )
    db.add_all([season, registration, capped, uncapped])
    db.add_all([
        DiscountCodeRecord(
            id="code_test50",
            code="TEST50",
            percentage=Decimal("50"),
            category_id=capped.id,
        ),
        DiscountCodeRecord(
            id="code_once",
            code="ONCE25",
            percentage=Decimal("25"),
            usage_limit=1,
            category_id=uncapped.id,
        ),
        DiscountCodeRecord(
            id="code_expired",
            code="OLD10",
            percentage=Decimal("10"),
            category_id=uncapped.id,
            valid_until=date.today() - timedelta(days=1),
        ),
    ])
    db.commit()

    return {
        "season_id": season.id,
        "registration_id": registration.id,
        "capped_category_id": capped.id,
        "uncapped_category_id": uncapped.id,
    }
