import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice import models, schemas, webhooks
from backoffice.database import Base, get_db
from backoffice.main import app


@pytest.fixture
def engine():
    """
    In-memory SQLite engine, fresh schema per test.

    StaticPool keeps a single connection so the test session and the
    sessions opened by request handlers see the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory, monkeypatch):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(webhooks, "WEBHOOK_URLS", [])
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_product(db_session):
    """
    Factory creating a product with an inventory record holding `stock` units.

    Stock is seeded directly on the record; movements are only produced by
    the operations under test.
    """
    counter = {"n": 0}

    def _make(name="Solar Panel", price="100.00", stock=10, serial_tracked=False, with_inventory=True):
        counter["n"] += 1
        product = models.Product(
            product_name=name,
            sku=f"SKU-{counter['n']:03d}",
            category="Hardware",
            price=Decimal(price),
            serial_tracked=serial_tracked,
        )
        db_session.add(product)
        db_session.flush()
        inventory = None
        if with_inventory:
            inventory = models.InventoryItem(product_id=product.id, stock_level=stock, serial_numbers=[])
            db_session.add(inventory)
        db_session.commit()
        return product, inventory

    return _make


@pytest.fixture
def sale_payload():
    """Build a SaleCreate for (product, quantity) pairs."""
    def _payload(*lines, client_name="Acme Corp"):
        return schemas.SaleCreate(
            client_name=client_name,
            sale_items=[schemas.SaleItemIn(product=product_id, quantity=qty) for product_id, qty in lines],
            date_of_purchase=datetime(2024, 5, 1, 10, 0, 0),
            warranty="1 year",
            term_payable="30 days",
            mode_of_payment="Cash",
            status="Paid",
        )
    return _payload

