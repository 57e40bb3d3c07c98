"""Pytest configuration and fixtures."""

import os

# Must be set before pharmaflow.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EVENTS_ENABLED"] = "false"

import pytest
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pharmaflow.api.deps import get_event_publisher
from pharmaflow.database import Base, get_db, enable_sqlite_foreign_keys
from pharmaflow.main import app
# Import all models to ensure they're registered with Base.metadata
from pharmaflow.models import *
from pharmaflow.publishers.event_publisher import EventPublisher
from pharmaflow.services.approval_gate import ApprovalGate
from pharmaflow.services.delivery_tracker import DeliveryTracker
from pharmaflow.services.inventory_ledger import InventoryLedger
from pharmaflow.services.order_service import OrderService
from pharmaflow.services.return_processor import ReturnProcessor

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class RecordingPublisher(EventPublisher):
    """Publisher that keeps events in memory instead of sending them."""

    def __init__(self):
        super().__init__()
        self.events = []

    def publish(self, event_type, routing_key, data):
        self.events.append(self.build_event(event_type, data))
        return True

    def of_type(self, event_type):
        return [e for e in self.events if e["event_type"] == event_type]


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture(scope="function")
def client(db_session: Session, publisher: RecordingPublisher) -> Generator[TestClient, None, None]:
    """Create a test client with database and publisher overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_product(db: Session, sku: str, price: str, quantity: int, reserved: int = 0, **inventory) -> Product:
    """Create a product with its inventory row."""
    product = Product(sku=sku, name=f"Product {sku}", price=Decimal(price), requires_prescription=False)
    db.add(product)
    db.flush()
    db.add(Inventory(product_id=product.id, quantity=quantity, reserved_quantity=reserved, **inventory))
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def customer(db_session: Session) -> Customer:
    """Create a test customer."""
    customer = Customer(
        name="City Pharmacy",
        email="orders@citypharmacy.example",
        address={"street": "1 Main St", "city": "Springfield", "state": "IL", "zip": "62701", "country": "US"},
    )
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def amoxicillin(db_session: Session) -> Product:
    return make_product(db_session, "AMX-500", "25.50", quantity=100)


@pytest.fixture
def insulin(db_session: Session) -> Product:
    return make_product(db_session, "INS-100", "89.99", quantity=20)


@pytest.fixture
def ledger(db_session: Session) -> InventoryLedger:
    return InventoryLedger(db_session)


@pytest.fixture
def order_service(db_session: Session, publisher: RecordingPublisher) -> OrderService:
    return OrderService(db_session, publisher)


@pytest.fixture
def gate(db_session: Session, publisher: RecordingPublisher) -> ApprovalGate:
    return ApprovalGate(db_session, publisher, auto_forward=True)


@pytest.fixture
def tracker(db_session: Session, publisher: RecordingPublisher) -> DeliveryTracker:
    return DeliveryTracker(db_session, publisher)


@pytest.fixture
def returns(db_session: Session, publisher: RecordingPublisher) -> ReturnProcessor:
    return ReturnProcessor(db_session, publisher)


@pytest.fixture
def draft_order(order_service, customer, amoxicillin, insulin) -> Order:
    """Draft order: 10 x AMX-500 @ 25.50 and 5 x INS-100 @ 89.99."""
    return order_service.create_order(
        customer.id,
        [
            {"product_id": amoxicillin.id, "quantity": 10},
            {"product_id": insulin.id, "quantity": 5},
        ],
        actor="sales-1",
    )


@pytest.fixture
def approved_order(draft_order, order_service, gate) -> Order:
    """Order that passed both approval steps."""
    order_service.submit_order(draft_order.id, actor="sales-1")
    gate.decide_inventory(draft_order.id, True, actor="inventory-1")
    return gate.decide_accounting(draft_order.id, True, actor="accounting-1")
