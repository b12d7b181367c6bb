"""
CRUD (Create, Read, Update, Delete) operations for the back-office service.

This module contains the database operations for products, inventory records,
sale queries, job orders and quotations. Stock-changing sale operations live
in reconciler.py; manual stock adjustments live in movements.py.
"""
import math
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from . import models, movements, schemas, sequences, validators
from .exceptions import NotFound, ValidationError

SALE_SORT_COLUMNS = {
    "dateOfPurchase": models.Sale.date_of_purchase,
    "saleID": models.Sale.sale_id,
    "clientName": models.Sale.client_name,
    "overallTotalAmount": models.Sale.overall_total_amount,
    "status": models.Sale.status,
    "createdAt": models.Sale.created_at,
}

JOB_ORDER_SORT_COLUMNS = {
    "installationDate": models.JobOrder.installation_date,
    "jobOrderID": models.JobOrder.job_order_id,
    "clientName": models.JobOrder.client_name,
    "status": models.JobOrder.status,
    "createdAt": models.JobOrder.created_at,
}


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for `total` rows at `limit` per page."""
    return math.ceil(total / limit) if limit else 0


# ---------- Products ----------

def get_product(db: Session, product_id: int) -> Optional[models.Product]:
    """
    Retrieve a single product by ID.

    Args:
        db: Database session
        product_id: ID of the product to retrieve

    Returns:
        Product object or None if not found
    """
    return db.query(models.Product).filter(models.Product.id == product_id).first()

def get_product_by_sku(db: Session, sku: str) -> Optional[models.Product]:
    """
    Retrieve a product by SKU.

    Args:
        db: Database session
        sku: SKU to search for

    Returns:
        Product object or None if not found
    """
    return db.query(models.Product).filter(models.Product.sku == sku).first()

def get_products(db: Session, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Tuple[List[models.Product], int]:
    """
    Retrieve a page of products, optionally filtered by name or SKU.

    Returns:
        Tuple of (products on the page, total matching products)
    """
    query = db.query(models.Product)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(models.Product.product_name.ilike(pattern), models.Product.sku.ilike(pattern)))
    total = query.count()
    rows = query.order_by(models.Product.product_name.asc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total

def create_product(db: Session, product: schemas.ProductCreate) -> models.Product:
    """
    Create a new product in the database.

    Raises:
        ValidationError: if the SKU already exists
    """
    if get_product_by_sku(db, product.sku):
        raise ValidationError("SKU already exists")
    db_product = models.Product(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product

def update_product(db: Session, product_id: int, product: schemas.ProductUpdate) -> models.Product:
    """
    Update an existing product. Only provided fields are changed.

    Sale totals already recorded are snapshots and do not follow price changes.

    Raises:
        NotFound: if the product does not exist
        ValidationError: if the new SKU belongs to another product
    """
    db_product = get_product(db, product_id)
    if db_product is None:
        raise NotFound("Product not found")

    update_data = product.model_dump(exclude_unset=True)
    if "sku" in update_data:
        existing = get_product_by_sku(db, update_data["sku"])
        if existing is not None and existing.id != product_id:
            raise ValidationError("SKU already exists")

    for key, value in update_data.items():
        setattr(db_product, key, value)

    db.commit()
    db.refresh(db_product)
    return db_product

def delete_product(db: Session, product_id: int) -> None:
    """
    Delete a product that has no inventory record.

    Raises:
        NotFound: if the product does not exist
        ValidationError: if the product still has an inventory record
    """
    db_product = get_product(db, product_id)
    if db_product is None:
        raise NotFound("Product not found")
    if db_product.inventory is not None:
        raise ValidationError("Product has an inventory record and cannot be deleted")
    db.delete(db_product)
    db.commit()

def get_products_by_ids(db: Session, product_ids: Iterable[int]) -> Dict[int, models.Product]:
    """Fetch several products at once, keyed by ID."""
    ids = {pid for pid in product_ids if pid is not None}
    if not ids:
        return {}
    rows = db.query(models.Product).filter(models.Product.id.in_(ids)).all()
    return {row.id: row for row in rows}


# ---------- Inventory ----------

def get_inventory_items(db: Session, skip: int = 0, limit: int = 100) -> List[models.InventoryItem]:
    """
    Retrieve a list of inventory records with pagination.

    Args:
        db: Database session
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return

    Returns:
        List of InventoryItem objects
    """
    return db.query(models.InventoryItem).order_by(models.InventoryItem.id.asc()).offset(skip).limit(limit).all()

def create_inventory_item(db: Session, item: schemas.InventoryItemCreate) -> models.InventoryItem:
    """
    Create the inventory record of a product.

    An opening stock level is booked as an "Initial stock" INCREASE movement
    so the movement log accounts for every unit on hand.

    Raises:
        NotFound: if the product does not exist
        ValidationError: if the product already has an inventory record
    """
    product = get_product(db, item.product_id)
    if product is None:
        raise NotFound(f"Product not found: {item.product_id}")
    if product.inventory is not None:
        raise ValidationError("Inventory record already exists for this product")

    is_valid, error_message = validators.validate_serial_numbers(
        models.MovementType.INCREASE, item.stock_level, item.serial_numbers,
        tracked=product.serial_tracked and item.stock_level > 0,
    )
    if not is_valid:
        raise ValidationError(error_message)

    try:
        db_item = models.InventoryItem(
            product_id=product.id,
            stock_level=item.stock_level,
            serial_numbers=list(item.serial_numbers),
        )
        db.add(db_item)
        db.flush()
        if item.stock_level > 0:
            movements.record(
                db, db_item.id, models.MovementType.INCREASE, item.stock_level,
                item.serial_numbers, "Initial stock",
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_item)
    return db_item

def get_inventory_analytics(db: Session, low_stock_threshold: int) -> dict:
    """
    Summarise stock across all inventory records.

    Returns:
        dict: total_items, total_quantity, out_of_stock, low_stock, low_stock_items
    """
    total_items = db.query(func.count(models.InventoryItem.id)).scalar()
    out_of_stock = db.query(func.count(models.InventoryItem.id)).filter(
        models.InventoryItem.stock_level == 0
    ).scalar()
    low_stock = db.query(func.count(models.InventoryItem.id)).filter(
        models.InventoryItem.stock_level > 0,
        models.InventoryItem.stock_level < low_stock_threshold
    ).scalar()
    total_quantity = db.query(func.sum(models.InventoryItem.stock_level)).scalar() or 0

    low_stock_items = db.query(models.InventoryItem).filter(
        models.InventoryItem.stock_level < low_stock_threshold
    ).order_by(models.InventoryItem.stock_level).all()

    return {
        "totalItems": total_items,
        "totalQuantity": total_quantity,
        "outOfStock": out_of_stock,
        "lowStock": low_stock,
        "lowStockItems": [
            {
                "id": item.id,
                "productId": item.product_id,
                "productName": item.product.product_name if item.product else None,
                "stockLevel": item.stock_level,
            }
            for item in low_stock_items
        ],
    }


# ---------- Sales ----------

def get_sales(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    order: Optional[str] = None,
) -> Tuple[List[models.Sale], int]:
    """
    Retrieve a page of sales.

    Args:
        db: Database session
        page: 1-based page number
        limit: Page size
        search: Case-insensitive substring matched against sale number and client name
        sort_by: Sort field (camelCase), unknown fields fall back to dateOfPurchase
        order: "asc" or "desc" (default)

    Returns:
        Tuple of (sales on the page, total matching sales)
    """
    query = db.query(models.Sale)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(models.Sale.sale_id.ilike(pattern), models.Sale.client_name.ilike(pattern)))

    key, ascending = validators.resolve_sort(sort_by, order, SALE_SORT_COLUMNS, "dateOfPurchase")
    column = SALE_SORT_COLUMNS[key]

    total = query.count()
    rows = (
        query.order_by(column.asc() if ascending else column.desc(), models.Sale.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def serialize_sales(db: Session, sales: List[models.Sale]) -> List[schemas.Sale]:
    """
    Build sale responses with product summaries attached to each item.

    Products that no longer exist are reported without details.
    """
    product_ids = [item["product"] for sale in sales for item in (sale.items or [])]
    products = get_products_by_ids(db, product_ids)

    result = []
    for sale in sales:
        sale_items = []
        for item in sale.items or []:
            product = products.get(item["product"])
            sale_items.append(schemas.SaleItem(
                product=item["product"],
                quantity=item["quantity"],
                total_amount=Decimal(str(item["totalAmount"])),
                product_details=schemas.ProductSummary.model_validate(product) if product else None,
            ))
        result.append(schemas.Sale(
            id=sale.id,
            sale_id=sale.sale_id,
            client_name=sale.client_name,
            sale_items=sale_items,
            overall_total_amount=sale.overall_total_amount,
            date_of_purchase=sale.date_of_purchase,
            warranty=sale.warranty,
            term_payable=sale.term_payable,
            mode_of_payment=sale.mode_of_payment,
            status=sale.status,
            created_at=sale.created_at,
            updated_at=sale.updated_at,
        ))
    return result

def serialize_sale(db: Session, sale: models.Sale) -> schemas.Sale:
    """Build a single sale response with product summaries."""
    return serialize_sales(db, [sale])[0]


# ---------- Job orders ----------

def get_job_order(db: Session, job_order_pk: int) -> Optional[models.JobOrder]:
    """
    Retrieve a single job order by ID.

    Returns:
        JobOrder object or None if not found
    """
    return db.query(models.JobOrder).filter(models.JobOrder.id == job_order_pk).first()

def get_job_orders(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    order: Optional[str] = None,
) -> Tuple[List[models.JobOrder], int]:
    """
    Retrieve a page of job orders, searched by job order number or client name.

    Returns:
        Tuple of (job orders on the page, total matching job orders)
    """
    query = db.query(models.JobOrder)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(models.JobOrder.job_order_id.ilike(pattern), models.JobOrder.client_name.ilike(pattern)))

    key, ascending = validators.resolve_sort(sort_by, order, JOB_ORDER_SORT_COLUMNS, "installationDate")
    column = JOB_ORDER_SORT_COLUMNS[key]

    total = query.count()
    rows = (
        query.order_by(column.asc() if ascending else column.desc(), models.JobOrder.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total

def create_job_order(db: Session, job_order: schemas.JobOrderCreate) -> models.JobOrder:
    """
    Create a job order for an existing sale.

    The client name is copied from the sale.

    Raises:
        NotFound: if the sale does not exist
    """
    sale = db.get(models.Sale, job_order.sale_id)
    if sale is None:
        raise NotFound("Sale not found")

    try:
        db_job_order = models.JobOrder(
            job_order_id=sequences.next_number(db, sequences.JOB_ORDER_KEY, sequences.JOB_ORDER_PREFIX),
            sale_pk=sale.id,
            client_name=sale.client_name,
            address=job_order.address,
            contact_info=job_order.contact_info,
            description=job_order.description,
            installation_date=job_order.installation_date,
            status=job_order.status,
        )
        db.add(db_job_order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_job_order)
    return db_job_order

def update_job_order(db: Session, job_order_pk: int, job_order: schemas.JobOrderUpdate) -> models.JobOrder:
    """
    Replace a job order's fields, re-copying the client name from its sale.

    Raises:
        NotFound: if the job order or the sale does not exist
    """
    db_job_order = get_job_order(db, job_order_pk)
    if db_job_order is None:
        raise NotFound("Job Order not found")

    sale = db.get(models.Sale, job_order.sale_id)
    if sale is None:
        raise NotFound("Sale not found")

    db_job_order.sale_pk = sale.id
    db_job_order.client_name = sale.client_name
    db_job_order.address = job_order.address
    db_job_order.contact_info = job_order.contact_info
    db_job_order.description = job_order.description
    db_job_order.installation_date = job_order.installation_date
    db_job_order.status = job_order.status

    db.commit()
    db.refresh(db_job_order)
    return db_job_order

def delete_job_order(db: Session, job_order_pk: int) -> None:
    """
    Delete a job order.

    Raises:
        NotFound: if the job order does not exist
    """
    db_job_order = get_job_order(db, job_order_pk)
    if db_job_order is None:
        raise NotFound("Job Order not found")
    db.delete(db_job_order)
    db.commit()


# ---------- Quotations ----------

def get_quotations(db: Session) -> List[models.Quotation]:
    """Retrieve all quotations, newest first."""
    return db.query(models.Quotation).order_by(models.Quotation.created_at.desc(), models.Quotation.id.desc()).all()

def create_quotation(db: Session, quotation: schemas.QuotationCreate) -> models.Quotation:
    """Create a quotation and assign it the next quotation number."""
    try:
        db_quotation = models.Quotation(
            quotation_number=sequences.next_number(db, sequences.QUOTATION_KEY, sequences.QUOTATION_PREFIX),
            **quotation.model_dump(),
        )
        db.add(db_quotation)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_quotation)
    return db_quotation
