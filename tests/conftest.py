import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="studio-discounts-tests-")
os.environ["APP_ENV"] = "staging"
os.environ["DB_TYPE"] = "sqlite"
os.environ["SQLITE_PATH"] = os.path.join(_DB_DIR, "test.db")
os.environ["JWT_ACCESS_SECRET_KEY"] = "test-secret-key"

from httpx import AsyncClient, ASGITransport  # noqa: E402

from main import app  # noqa: E402
from studio_discounts.core.clock import get_clock  # noqa: E402
from studio_discounts.core.db import Base, engine, AsyncSessionLocal  # noqa: E402
from studio_discounts.core.security import create_access_token  # noqa: E402
from studio_discounts.models.discounts.discount_models import DiscountCode  # noqa: E402
from studio_discounts.models.enums.discount_kind import DiscountKind  # noqa: E402
from studio_discounts.models.enums.discount_scope import DiscountScope  # noqa: E402
from studio_discounts.models.users.user_models import User  # noqa: E402

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    # pooled aiosqlite connections belong to this test's event loop
    await engine.dispose()


@pytest.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


async def _create_user(session, username, role, full_name=None):
    user = User(username=username, full_name=full_name, role=role, is_active=True, token_version=0)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def admin_user(db):
    return await _create_user(db, "admin@studio.test", "admin", "Ada Admin")


@pytest.fixture
async def staff_user(db):
    return await _create_user(db, "desk@studio.test", "staff", "Front Desk")


def auth_headers(user) -> dict:
    token = create_access_token(user.username, user.token_version)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def staff_headers(staff_user):
    return auth_headers(staff_user)


@pytest.fixture
def clock():
    """Mutable frozen clock: set clock["now"] to move time."""
    state = {"now": NOW}
    app.dependency_overrides[get_clock] = lambda: (lambda: state["now"])
    yield state
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
async def client(database, clock):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def make_definition():
    """Build an unsaved DiscountCode for the pure functions."""
    def _make(**overrides):
        fields = dict(
            id=1,
            code="SAVE10",
            name="Save 10",
            description=None,
            kind=DiscountKind.percentage,
            value=Decimal("10"),
            max_total_uses=None,
            max_uses_per_user=None,
            current_uses=0,
            valid_from=NOW - timedelta(days=1),
            valid_until=None,
            scope=DiscountScope.all,
            specific_item_ids=[],
            minimum_purchase_amount=None,
            enabled=True,
            version=1,
            created_at=NOW - timedelta(days=2),
        )
        fields.update(overrides)
        return DiscountCode(**fields)

    return _make


def discount_payload(**overrides) -> dict:
    payload = {
        "code": "SAVE10",
        "name": "Ten percent off",
        "kind": "percentage",
        "value": "10",
        "valid_from": (NOW - timedelta(days=1)).isoformat(),
        "scope": "all",
    }
    payload.update(overrides)
    return payload
