"""
Stock movement log and the direct stock adjustment entry point.

The log is append-only: movements are inserted and listed, never updated
or deleted.
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from . import ledger, models, validators
from .exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def record(
    db: Session,
    inventory_id: int,
    movement_type: str,
    quantity: int,
    serial_numbers: Optional[Sequence[str]] = None,
    reason: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> models.StockMovement:
    """
    Append a movement to the log.

    Args:
        db: Database session
        inventory_id: Inventory record that changed
        movement_type: INCREASE or DECREASE
        quantity: Units moved (positive)
        serial_numbers: Serials moved, in order
        reason: Free-text reason
        timestamp: When the movement happened (defaults to now)

    Returns:
        The new StockMovement (flushed, not committed)

    Raises:
        ValidationError: if the type or quantity is invalid
    """
    is_valid, error_message = validators.validate_movement(movement_type, quantity)
    if not is_valid:
        raise ValidationError(error_message)

    movement = models.StockMovement(
        inventory_id=inventory_id,
        type=movement_type,
        quantity=quantity,
        serial_numbers=list(serial_numbers or []),
        reason=reason,
        timestamp=timestamp or datetime.utcnow(),
    )
    db.add(movement)
    db.flush()
    return movement


def add_stock_movement(
    db: Session,
    inventory_id: int,
    movement_type: str,
    quantity: int,
    serial_numbers: Optional[Sequence[str]] = None,
    reason: Optional[str] = None,
) -> Tuple[models.StockMovement, int]:
    """
    Apply a manual stock adjustment and log it.

    INCREASE adds the given serials to the inventory record; none of them may
    already be on hand. DECREASE removes any of them that are on hand.

    Returns:
        Tuple of (movement, new_stock_level)

    Raises:
        NotFound: if the inventory record does not exist
        ValidationError: if type, quantity or serials are invalid
        InsufficientStock: if a DECREASE exceeds the stock on hand
    """
    serial_numbers = list(serial_numbers or [])
    inventory = ledger.get_inventory(db, inventory_id)

    is_valid, error_message = validators.validate_movement(movement_type, quantity)
    if not is_valid:
        raise ValidationError(error_message)

    tracked = inventory.product.serial_tracked if inventory.product is not None else True
    is_valid, error_message = validators.validate_serial_numbers(movement_type, quantity, serial_numbers, tracked)
    if not is_valid:
        raise ValidationError(error_message)

    if movement_type == models.MovementType.INCREASE:
        is_valid, error_message = validators.validate_serials_not_on_hand(serial_numbers, inventory.serial_numbers)
        if not is_valid:
            raise ValidationError(error_message)

    try:
        label = inventory.product.product_name if inventory.product is not None else None
        if movement_type == models.MovementType.INCREASE:
            new_level = ledger.apply_delta(db, inventory, quantity, label=label)
            ledger.add_serials(inventory, serial_numbers)
        else:
            new_level = ledger.apply_delta(db, inventory, -quantity, label=label)
            ledger.remove_serials(inventory, serial_numbers)

        movement = record(db, inventory.id, movement_type, quantity, serial_numbers, reason)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to record stock movement: {str(e)}") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(movement)
    logger.info(f"Stock {movement_type} of {quantity} on inventory {inventory_id} ({reason!r}); stock level now {new_level}")
    return movement, new_level


def list_movements(
    db: Session,
    page: int = 1,
    limit: int = 5,
    inventory_id: Optional[int] = None,
    movement_type: Optional[str] = None,
) -> Tuple[List[models.StockMovement], int]:
    """
    Page through the log, newest first.

    Returns:
        Tuple of (movements on the page, total matching movements)
    """
    query = db.query(models.StockMovement)
    if inventory_id is not None:
        query = query.filter(models.StockMovement.inventory_id == inventory_id)
    if movement_type:
        query = query.filter(models.StockMovement.type == movement_type)

    total = query.count()
    rows = (
        query.order_by(models.StockMovement.timestamp.desc(), models.StockMovement.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total
