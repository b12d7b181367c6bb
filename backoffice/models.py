"""
SQLAlchemy ORM models for the back-office service.

Defines the database schema for products, inventory, stock movements,
sales, job orders, quotations and numbering counters.
"""
from datetime import datetime
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from .database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB, "postgresql")


class MovementType:
    """Allowed values for StockMovement.type."""
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"

    ALL = (INCREASE, DECREASE)


class Product(Base):
    """
    Product catalog entry.

    Attributes:
        id (int): Primary key
        product_name (str): Display name
        sku (str): Stock Keeping Unit (unique)
        category (str): Free-form category label
        price (Decimal): Unit price, non-negative
        serial_tracked (bool): Whether stock increases must carry one serial per unit
        created_at (datetime): Timestamp when the product was created
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    product_name = Column(String, nullable=False)
    sku = Column(String, unique=True, index=True, nullable=False)
    category = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    serial_tracked = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    inventory = relationship("InventoryItem", back_populates="product", uselist=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
    )


class InventoryItem(Base):
    """
    Per-product stock bookkeeping.

    Attributes:
        id (int): Primary key (the inventory id referenced by movements)
        product_id (int): Product this record tracks (one record per product)
        stock_level (int): Units on hand, never negative
        serial_numbers (list): Serial numbers currently on hand
        created_at (datetime): Timestamp when the record was created
        updated_at (datetime): Timestamp of the last change
    """
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), unique=True, index=True, nullable=False)
    stock_level = Column(Integer, nullable=False, default=0)
    serial_numbers = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", back_populates="inventory")

    __table_args__ = (
        CheckConstraint("stock_level >= 0", name="ck_inventory_stock_level_nonneg"),
    )


class StockMovement(Base):
    """
    Immutable audit entry for one stock change.

    Attributes:
        id (int): Primary key
        inventory_id (int): Inventory record that was changed
        type (str): INCREASE or DECREASE
        quantity (int): Units moved, always positive
        serial_numbers (list): Serial numbers moved, in request order
        reason (str): Free-text reason
        timestamp (datetime): When the movement happened
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    inventory_id = Column(Integer, ForeignKey("inventory.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    serial_numbers = Column(JSONType, nullable=False, default=list)
    reason = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    inventory = relationship("InventoryItem")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_pos"),
    )


class Sale(Base):
    """
    Client sale with its line items embedded.

    Attributes:
        id (int): Primary key
        sale_id (str): Human-facing number (e.g. "SALE-0001")
        client_name (str): Client the sale was made to
        items (list): Line items [{product, quantity, totalAmount}] stored as JSON,
            totals snapshotted as decimal strings
        overall_total_amount (Decimal): Sum of the item totals
        date_of_purchase (datetime): Purchase date supplied by the client
        warranty (str): Warranty terms
        term_payable (str): Payment term
        mode_of_payment (str): Payment method
        status (str): Sale status
    """
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(String, unique=True, index=True, nullable=False)
    client_name = Column(String, index=True, nullable=False)
    items = Column(JSONType, nullable=False, default=list)
    overall_total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    date_of_purchase = Column(DateTime, nullable=False)
    warranty = Column(String, nullable=False)
    term_payable = Column(String, nullable=False)
    mode_of_payment = Column(String, nullable=False)
    status = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class JobOrder(Base):
    """
    Installation job raised against a sale.

    The client name is copied from the sale when the job order is written
    and is not kept in sync afterwards.
    """
    __tablename__ = "job_orders"

    id = Column(Integer, primary_key=True, index=True)
    job_order_id = Column(String, unique=True, index=True, nullable=False)
    sale_pk = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    client_name = Column(String, index=True, nullable=False)
    address = Column(String, nullable=False)
    contact_info = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    installation_date = Column(DateTime, nullable=False)
    status = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sale = relationship("Sale")


class Quotation(Base):
    """Price quotation issued to a prospective client."""
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    quotation_number = Column(String, unique=True, index=True, nullable=False)
    company_name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    contact_no = Column(String, nullable=False)
    tin = Column(String, nullable=True)
    client_name = Column(String, nullable=False)
    quotation_date = Column(DateTime, nullable=False)
    expiry_date = Column(DateTime, nullable=False)
    reference = Column(String, nullable=True)
    sales_person = Column(String, nullable=True)
    payment_term = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Counter(Base):
    """Numbering counter keyed by entity type (e.g. "saleID")."""
    __tablename__ = "counters"

    name = Column(String, primary_key=True)
    seq = Column(Integer, nullable=False, default=0)
