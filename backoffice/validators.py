"""
Business-rule validation for the back-office service.

Provides checks beyond schema validation. Each check returns a
(is_valid, error_message) tuple; callers decide which error to raise.
"""
from typing import List, Optional, Sequence, Tuple
from . import schemas
from .models import MovementType

MAX_SALE_ITEMS = 100

SALE_HEADER_FIELDS = (
    "client_name",
    "date_of_purchase",
    "warranty",
    "term_payable",
    "mode_of_payment",
    "status",
)


def validate_sale_items(items: Optional[List[schemas.SaleItemIn]]) -> Tuple[bool, str]:
    """
    Validate requested sale lines.

    Args:
        items: Requested sale lines

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not items:
        return False, "Sale must contain at least one item"

    if len(items) > MAX_SALE_ITEMS:
        return False, f"Sale cannot contain more than {MAX_SALE_ITEMS} items"

    for item in items:
        if not item.product or not item.quantity:
            return False, "Each sale item must have a product and quantity"
        if item.quantity < 0:
            return False, f"Item {item.product}: quantity must be positive"

    return True, ""


def validate_sale_fields(sale: schemas.SaleCreate) -> Tuple[bool, str]:
    """
    Validate that every sale header field is present.

    Args:
        sale: Sale payload

    Returns:
        Tuple of (is_valid, error_message)
    """
    for field in SALE_HEADER_FIELDS:
        value = getattr(sale, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return False, "All fields are required"
    return True, ""


def validate_sale_update_fields(sale: schemas.SaleUpdate) -> Tuple[bool, str]:
    """
    Validate header fields sent with a sale update.

    Omitted fields keep their stored values; fields that are sent must not
    be blank.
    """
    for field in SALE_HEADER_FIELDS:
        value = getattr(sale, field)
        if isinstance(value, str) and not value.strip():
            return False, "All fields are required"
    return True, ""


def validate_serials_not_on_hand(serial_numbers: Sequence[str], on_hand: Sequence[str]) -> Tuple[bool, str]:
    """Check that serials being received are not already in stock."""
    held = set(on_hand or [])
    present = [serial for serial in serial_numbers if serial in held]
    if present:
        return False, f"Serial numbers already in stock: {', '.join(present)}"
    return True, ""


def validate_movement(movement_type: str, quantity: int) -> Tuple[bool, str]:
    """Check the movement type and quantity."""
    if movement_type not in MovementType.ALL:
        return False, f"Invalid movement type '{movement_type}'. Expected one of: {', '.join(MovementType.ALL)}"
    if quantity is None or quantity <= 0:
        return False, "Quantity must be a positive integer"
    return True, ""


def validate_serial_numbers(
    movement_type: str,
    quantity: int,
    serial_numbers: Sequence[str],
    tracked: bool = True,
) -> Tuple[bool, str]:
    """
    Validate serial numbers supplied with a stock movement.

    Serial-tracked stock increases need exactly one serial per unit.

    Args:
        movement_type: INCREASE or DECREASE
        quantity: Units moved
        serial_numbers: Serials supplied with the movement
        tracked: Whether the product is serial-tracked

    Returns:
        Tuple of (is_valid, error_message)
    """
    if movement_type == MovementType.INCREASE and tracked:
        if not serial_numbers or len(serial_numbers) != quantity:
            return False, "Serial numbers must match the quantity"
    if len(set(serial_numbers or [])) != len(serial_numbers or []):
        return False, "Serial numbers must be unique"
    return True, ""


def resolve_sort(sort_by: Optional[str], order: Optional[str], allowed: dict, default: str) -> Tuple[str, bool]:
    """
    Map a client-supplied sort field onto a known column key.

    Unknown fields fall back to the default; anything other than "asc"
    sorts descending.

    Returns:
        Tuple of (column_key, ascending)
    """
    key = sort_by if sort_by in allowed else default
    return key, order == "asc"
