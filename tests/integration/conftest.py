import hashlib
import hmac
import json
import time
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers every table with SQLModel.metadata
from src.adapter.services.stripe_gateway import StripePaymentGateway
from src.app.services.idempotency_store import IdempotencyStore
from src.app.services.payment_gateway import CheckoutSession, CheckoutSessionRequest
from src.depends import get_idempotency_store, get_payment_gateway, get_session
from src.domain.construction import Construction
from src.domain.organization import Organization
from src.domain.promotion_package import PromotionPackage

WEBHOOK_SECRET = "whsec_integration"


class InMemoryIdempotencyStore(IdempotencyStore):
    """Idempotency store backed by dicts, expiry ignored"""

    def __init__(self):
        self.processed: dict[str, int] = {}
        self.processing: set[str] = set()

    async def is_processed(self, event_id: str) -> bool:
        return event_id in self.processed

    async def acquire(self, event_id: str, ttl_seconds: int) -> bool:
        if event_id in self.processing:
            return False
        self.processing.add(event_id)
        return True

    async def release(self, event_id: str) -> None:
        self.processing.discard(event_id)

    async def mark_processed(self, event_id: str, ttl_seconds: int) -> None:
        self.processed[event_id] = ttl_seconds


class FakePaymentGateway(StripePaymentGateway):
    """Real webhook signature checks, canned customers and checkout sessions"""

    def __init__(self):
        super().__init__(secret_key="sk_test_integration", webhook_secret=WEBHOOK_SECRET)
        self.customers: list[dict] = []
        self.checkout_requests: list[CheckoutSessionRequest] = []

    async def create_customer(self, email, name, metadata) -> str:
        self.customers.append({"email": email, "name": name, "metadata": metadata})
        return f"cus_test_{len(self.customers)}"

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        self.checkout_requests.append(request)
        session_id = f"cs_test_{len(self.checkout_requests)}"
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}")


def signed_event(event: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, dict]:
    """Serialize an event and build the matching Stripe-Signature header"""
    payload = json.dumps(event).encode("utf-8")
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.".encode("utf-8") + payload, hashlib.sha256
    ).hexdigest()
    return payload, {"Stripe-Signature": f"t={timestamp},v1={digest}", "Content-Type": "application/json"}


@pytest_asyncio.fixture(scope="function")
async def engine():
    """In-memory SQLite database shared across connections of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a new database session for each test"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest.fixture
def idempotency_store():
    return InMemoryIdempotencyStore()


@pytest.fixture
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture
def sign_event():
    return signed_event


@pytest_asyncio.fixture
async def client(db_session, idempotency_store, payment_gateway):
    """Create test client with database session and provider overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_idempotency_store] = lambda: idempotency_store
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def organization(db_session):
    organization = Organization(
        name="Acme Construction",
        contact_email="contact@acme.vn",
        billing_email="billing@acme.vn",
    )
    db_session.add(organization)
    await db_session.commit()
    await db_session.refresh(organization)
    return organization


@pytest_asyncio.fixture
async def construction(db_session, organization):
    construction = Construction(
        organization_id=organization.id,
        title="Riverside Villa",
        construction_category="private",
        approval_status="published",
        impressions=120,
        clicks=8,
    )
    db_session.add(construction)
    await db_session.commit()
    await db_session.refresh(construction)
    return construction


@pytest_asyncio.fixture
async def package(db_session):
    package = PromotionPackage(
        name="Featured 30 days",
        slug="featured-30",
        cost_in_credits=300_000,
        duration_days=30,
    )
    db_session.add(package)
    await db_session.commit()
    await db_session.refresh(package)
    return package
