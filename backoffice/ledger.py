"""
Inventory ledger: per-product stock levels and serial number sets.

Stock levels only change through apply_delta(), which issues a single UPDATE
per change. Decrements carry their own stock check in the WHERE clause so a
level can never be driven below zero, even by concurrent requests.
"""
import logging
from typing import Iterable, List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session
from . import models
from .exceptions import InsufficientStock, NotFound

logger = logging.getLogger(__name__)


def get_inventory(db: Session, inventory_id: int) -> models.InventoryItem:
    """
    Retrieve an inventory record by ID.

    Raises:
        NotFound: if no such record exists
    """
    inventory = db.get(models.InventoryItem, inventory_id)
    if inventory is None:
        raise NotFound("Inventory item not found")
    return inventory


def find_by_product(db: Session, product_id: int) -> Optional[models.InventoryItem]:
    """Return the inventory record of a product, or None."""
    return (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.product_id == product_id)
        .first()
    )


def get_by_product(db: Session, product_id: int) -> models.InventoryItem:
    """
    Retrieve the inventory record of a product.

    Raises:
        NotFound: if the product has no inventory record
    """
    inventory = find_by_product(db, product_id)
    if inventory is None:
        raise NotFound(f"Inventory record not found for product: {product_id}")
    return inventory


def apply_delta(db: Session, inventory: models.InventoryItem, delta: int, label: Optional[str] = None) -> int:
    """
    Add `delta` (positive or negative) to an inventory record's stock level.

    Args:
        db: Database session
        inventory: Record to change
        delta: Signed quantity
        label: Name used in the insufficient-stock message (defaults to the inventory id)

    Returns:
        The new stock level

    Raises:
        InsufficientStock: if the record holds fewer than -delta units
    """
    # pending attribute changes must reach the database before the UPDATE
    db.flush()

    stmt = (
        update(models.InventoryItem)
        .where(models.InventoryItem.id == inventory.id)
        .values(stock_level=models.InventoryItem.stock_level + delta)
        .execution_options(synchronize_session=False)
    )
    if delta < 0:
        stmt = stmt.where(models.InventoryItem.stock_level >= -delta)

    result = db.execute(stmt)
    if result.rowcount == 0:
        db.refresh(inventory)
        name = label or f"inventory {inventory.id}"
        raise InsufficientStock(
            f"Insufficient stock for product: {name}",
            details={
                "inventoryId": inventory.id,
                "available": inventory.stock_level,
                "requested": -delta,
            },
        )

    db.refresh(inventory)
    logger.debug(f"Inventory {inventory.id}: applied {delta:+d}, stock level now {inventory.stock_level}")
    return inventory.stock_level


def add_serials(inventory: models.InventoryItem, serial_numbers: Iterable[str]) -> List[str]:
    """Add serials to the record's set, keeping existing order and skipping duplicates."""
    current = list(inventory.serial_numbers or [])
    seen = set(current)
    for serial in serial_numbers:
        if serial not in seen:
            current.append(serial)
            seen.add(serial)
    inventory.serial_numbers = current
    return current


def remove_serials(inventory: models.InventoryItem, serial_numbers: Iterable[str]) -> List[str]:
    """Remove serials from the record's set. Serials not on hand are ignored."""
    removed = set(serial_numbers)
    current = [serial for serial in (inventory.serial_numbers or []) if serial not in removed]
    inventory.serial_numbers = current
    return current
