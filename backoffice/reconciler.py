"""
Sale reconciliation.

Creating, updating or deleting a sale moves stock: every change is applied
to the product's inventory record and logged as a stock movement. Each
operation runs as one unit of work on the caller's session. Steps reach the
database in order (flushed one by one) and are committed together, so a
failure part-way through leaves no partial decrements, reversals or
movements behind.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from . import ledger, models, movements, schemas, sequences, validators
from .exceptions import InsufficientStock, NotFound, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

REASON_SALE = "Sale deduction"
REASON_UPDATE_REVERSAL = "Sale update reversal"
REASON_UPDATE_DEDUCTION = "Sale update deduction"
REASON_DELETION = "Sale deletion - stock restored"


def get_sale(db: Session, sale_pk: int) -> models.Sale:
    """
    Retrieve a sale by primary key.

    Raises:
        NotFound: if the sale does not exist
    """
    sale = db.get(models.Sale, sale_pk)
    if sale is None:
        raise NotFound("Sale not found")
    return sale


def _deduct_items(db: Session, items: List[schemas.SaleItemIn], reason: str) -> Tuple[List[dict], Decimal]:
    """
    Take each requested line out of stock, in order.

    For every line: resolve the product and its inventory record, take the
    quantity out of stock, log a DECREASE and snapshot the line total.

    Returns:
        Tuple of (processed line items, overall total)
    """
    processed_items = []
    overall_total = Decimal("0")

    for item in items:
        product = db.get(models.Product, item.product)
        if product is None:
            raise NotFound(f"Product not found: {item.product}")

        inventory = ledger.get_by_product(db, product.id)

        if inventory.stock_level < item.quantity:
            raise InsufficientStock(
                f"Insufficient stock for product: {product.product_name}",
                details={
                    "product": product.id,
                    "available": inventory.stock_level,
                    "requested": item.quantity,
                },
            )

        ledger.apply_delta(db, inventory, -item.quantity, label=product.product_name)
        movements.record(db, inventory.id, models.MovementType.DECREASE, item.quantity, [], reason)

        item_total = Decimal(product.price) * item.quantity
        overall_total += item_total
        processed_items.append({
            "product": product.id,
            "quantity": item.quantity,
            "totalAmount": str(item_total),
        })
        logger.debug(f"Deducted {item.quantity} of product {product.id} ({reason})")

    return processed_items, overall_total


def _restore_items(db: Session, items: List[dict], reason: str) -> int:
    """
    Put stored sale lines back into stock.

    Lines whose product no longer has an inventory record are skipped.

    Returns:
        Number of lines restored
    """
    restored = 0
    for item in items or []:
        product_id = item["product"]
        quantity = int(item["quantity"])
        inventory = ledger.find_by_product(db, product_id)
        if inventory is None:
            logger.warning(f"No inventory record for product {product_id}; skipping restore of {quantity} ({reason})")
            continue

        ledger.apply_delta(db, inventory, quantity)
        movements.record(db, inventory.id, models.MovementType.INCREASE, quantity, [], reason)
        restored += 1
    return restored


def _check_items(items: Optional[List[schemas.SaleItemIn]]) -> None:
    is_valid, error_message = validators.validate_sale_items(items)
    if not is_valid:
        raise ValidationError(error_message)


def create_sale(db: Session, sale: schemas.SaleCreate) -> models.Sale:
    """
    Create a sale and take its items out of stock.

    Args:
        db: Database session
        sale: Sale payload

    Returns:
        The committed Sale

    Raises:
        ValidationError: if a field or line is missing or malformed
        NotFound: if a product or its inventory record does not exist
        InsufficientStock: if a line exceeds the stock on hand
    """
    is_valid, error_message = validators.validate_sale_fields(sale)
    if not is_valid:
        raise ValidationError(error_message)
    _check_items(sale.sale_items)

    try:
        processed_items, overall_total = _deduct_items(db, sale.sale_items, REASON_SALE)

        db_sale = models.Sale(
            sale_id=sequences.next_number(db, sequences.SALE_KEY, sequences.SALE_PREFIX),
            client_name=sale.client_name,
            items=processed_items,
            overall_total_amount=overall_total,
            date_of_purchase=sale.date_of_purchase,
            warranty=sale.warranty,
            term_payable=sale.term_payable,
            mode_of_payment=sale.mode_of_payment,
            status=sale.status,
        )
        db.add(db_sale)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to save sale: {str(e)}") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(db_sale)
    logger.info(f"Sale {db_sale.sale_id} created for '{db_sale.client_name}' with {len(processed_items)} item(s), total {overall_total}")
    return db_sale


def update_sale(db: Session, sale_pk: int, sale: schemas.SaleUpdate) -> models.Sale:
    """
    Replace a sale's items, moving stock to match.

    The old items are put back into stock first, then the new items are
    taken out. Header fields left out of the payload keep their values.

    Raises:
        NotFound: if the sale, a product or an inventory record does not exist
        ValidationError: if a header field is blank or the new items are missing or malformed
        InsufficientStock: if a new line exceeds the stock on hand
    """
    db_sale = get_sale(db, sale_pk)
    is_valid, error_message = validators.validate_sale_update_fields(sale)
    if not is_valid:
        raise ValidationError(error_message)
    _check_items(sale.sale_items)

    try:
        _restore_items(db, db_sale.items, REASON_UPDATE_REVERSAL)
        processed_items, overall_total = _deduct_items(db, sale.sale_items, REASON_UPDATE_DEDUCTION)

        db_sale.items = processed_items
        db_sale.overall_total_amount = overall_total
        for field in validators.SALE_HEADER_FIELDS:
            value = getattr(sale, field)
            if value is not None:
                setattr(db_sale, field, value)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to save sale: {str(e)}") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(db_sale)
    logger.info(f"Sale {db_sale.sale_id} updated: {len(processed_items)} item(s), total {overall_total}")
    return db_sale


def delete_sale(db: Session, sale_pk: int) -> str:
    """
    Delete a sale after putting its items back into stock.

    Returns:
        The deleted sale's number

    Raises:
        NotFound: if the sale does not exist
    """
    db_sale = get_sale(db, sale_pk)
    sale_number = db_sale.sale_id

    try:
        _restore_items(db, db_sale.items, REASON_DELETION)
        db.query(models.JobOrder).filter(models.JobOrder.sale_pk == db_sale.id).delete(synchronize_session=False)
        db.delete(db_sale)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to delete sale: {str(e)}") from e
    except Exception:
        db.rollback()
        raise

    logger.info(f"Sale {sale_number} deleted and inventory restored")
    return sale_number
