"""
Pydantic schemas for request/response validation in the back-office service.

These schemas define the structure of data for API requests and responses.
Field names are exposed in camelCase for the web front end; snake_case is
accepted on input as well.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exposing camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Message(CamelModel):
    """Plain confirmation message."""
    message: str


# ---------- Products ----------

class ProductBase(CamelModel):
    """Base schema with common product attributes."""
    product_name: str
    sku: str
    category: Optional[str] = None
    price: Decimal = Field(..., ge=0, description="Unit price")
    serial_tracked: bool = True


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(CamelModel):
    """Schema for updating an existing product. All fields are optional."""
    product_name: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    serial_tracked: Optional[bool] = None


class Product(ProductBase):
    """Schema for product responses."""
    id: int
    created_at: datetime


class ProductSummary(CamelModel):
    """Product fields shown alongside sale items and inventory records."""
    id: int
    product_name: str
    sku: str
    category: Optional[str] = None
    price: Decimal


class ProductPage(CamelModel):
    """One page of products."""
    data: List[Product]
    total: int
    total_pages: int
    current_page: int


# ---------- Inventory ----------

class InventoryItemCreate(CamelModel):
    """
    Schema for creating the inventory record of a product.

    A non-zero opening stock level is booked as an INCREASE movement.
    """
    product_id: int
    stock_level: int = Field(0, ge=0)
    serial_numbers: List[str] = Field(default_factory=list)


class InventoryItem(CamelModel):
    """
    Schema for inventory record responses.

    Attributes:
        id (int): Inventory record identifier
        product_id (int): Product tracked by this record
        stock_level (int): Units on hand
        serial_numbers (List[str]): Serial numbers on hand
        product (ProductSummary): Product details (optional)
    """
    id: int
    product_id: int
    stock_level: int
    serial_numbers: List[str] = Field(default_factory=list)
    product: Optional[ProductSummary] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---------- Stock movements ----------

class StockMovementCreate(CamelModel):
    """Schema for a direct stock adjustment."""
    inventory_id: int
    type: str = Field(..., description="INCREASE or DECREASE")
    quantity: int
    serial_numbers: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class StockMovement(CamelModel):
    """Schema for stock movement responses."""
    id: int
    inventory_id: int
    type: str
    quantity: int
    serial_numbers: List[str] = Field(default_factory=list)
    reason: Optional[str] = None
    timestamp: datetime


class StockMovementResult(CamelModel):
    """Response for a recorded stock movement."""
    message: str
    stock_movement: StockMovement
    new_stock_level: int


class StockMovementPage(CamelModel):
    """One page of the movement log, newest first."""
    data: List[StockMovement]
    total: int
    total_pages: int
    current_page: int


# ---------- Sales ----------

class SaleItemIn(CamelModel):
    """Requested sale line: a product id and a quantity."""
    product: Optional[int] = Field(None, description="Product id")
    quantity: Optional[int] = Field(None, description="Units sold")


class SaleCreate(CamelModel):
    """
    Schema for creating a sale.

    Presence of every field is checked by the reconciler so that direct
    callers get the same validation as HTTP clients.
    """
    client_name: Optional[str] = None
    sale_items: Optional[List[SaleItemIn]] = None
    date_of_purchase: Optional[datetime] = None
    warranty: Optional[str] = None
    term_payable: Optional[str] = None
    mode_of_payment: Optional[str] = None
    status: Optional[str] = None


class SaleUpdate(SaleCreate):
    """Schema for updating a sale. Items are replaced; omitted header fields are kept."""
    pass


class SaleItem(CamelModel):
    """
    Stored sale line.

    Attributes:
        product (int): Product id
        quantity (int): Units sold
        total_amount (Decimal): Unit price x quantity at the time of sale
        product_details (ProductSummary): Current product details, when available
    """
    product: int
    quantity: int
    total_amount: Decimal
    product_details: Optional[ProductSummary] = None


class Sale(CamelModel):
    """Schema for sale responses."""
    id: int
    sale_id: str = Field(..., alias="saleID")
    client_name: str
    sale_items: List[SaleItem]
    overall_total_amount: Decimal
    date_of_purchase: datetime
    warranty: str
    term_payable: str
    mode_of_payment: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SaleResult(CamelModel):
    """Response for a created or updated sale."""
    message: str
    sale: Sale


class SalePage(CamelModel):
    """One page of sales."""
    data: List[Sale]
    total_pages: int
    current_page: int


# ---------- Job orders ----------

class JobOrderBase(CamelModel):
    """Base schema with common job order attributes."""
    sale_id: int = Field(..., alias="saleID", description="Primary key of the sale")
    address: str = Field(..., min_length=1)
    contact_info: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    installation_date: datetime
    status: str = Field(..., min_length=1)


class JobOrderCreate(JobOrderBase):
    """Schema for creating a job order."""
    pass


class JobOrderUpdate(JobOrderBase):
    """Schema for replacing a job order. All fields are required."""
    pass


class JobOrder(CamelModel):
    """Schema for job order responses."""
    id: int
    job_order_id: str = Field(..., alias="jobOrderID")
    sale_id: int = Field(..., alias="saleID", validation_alias="sale_pk")
    client_name: str
    address: str
    contact_info: str
    description: str
    installation_date: datetime
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JobOrderResult(CamelModel):
    """Response for a created or updated job order."""
    message: str
    job_order: JobOrder


class JobOrderPage(CamelModel):
    """One page of job orders."""
    data: List[JobOrder]
    total_pages: int
    current_page: int


# ---------- Quotations ----------

class QuotationCreate(CamelModel):
    """Schema for creating a quotation. The quotation number is assigned by the server."""
    company_name: str
    address: str
    contact_no: str
    tin: Optional[str] = None
    client_name: str
    quotation_date: datetime
    expiry_date: datetime
    reference: Optional[str] = None
    sales_person: Optional[str] = None
    payment_term: Optional[str] = None


class Quotation(QuotationCreate):
    """Schema for quotation responses."""
    id: int
    quotation_number: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
