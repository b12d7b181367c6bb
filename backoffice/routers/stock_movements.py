"""
Stock movement endpoints: manual adjustments and the audit log.
"""
import csv
import io
import json
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from .. import crud, movements, schemas, webhooks
from ..database import get_db

router = APIRouter(prefix="/stock-movements", tags=["stock-movements"])


@router.post("", response_model=schemas.StockMovementResult)
async def add_stock_movement(payload: schemas.StockMovementCreate, db: Session = Depends(get_db)):
    """
    Increase or decrease an inventory record's stock.

    INCREASE on a serial-tracked product needs one serial number per unit;
    those serials are added to the record. DECREASE removes any listed serials
    that are on hand.

    Raises:
        NotFound: 404 if the inventory record does not exist
        ValidationError: 400 if type, quantity or serials are invalid
        InsufficientStock: 400 if a DECREASE exceeds the stock on hand
    """
    movement, new_level = movements.add_stock_movement(
        db,
        inventory_id=payload.inventory_id,
        movement_type=payload.type,
        quantity=payload.quantity,
        serial_numbers=payload.serial_numbers,
        reason=payload.reason,
    )
    movement_out = schemas.StockMovement.model_validate(movement)
    webhooks.notify_stock_movement(movement_out.model_dump(mode="json", by_alias=True), new_level)
    return schemas.StockMovementResult(
        message="Stock successfully updated!",
        stock_movement=movement_out,
        new_stock_level=new_level,
    )


@router.get("", response_model=schemas.StockMovementPage)
def list_stock_movements(
    page: int = Query(1, ge=1),
    limit: int = Query(5, ge=1, le=500),
    inventory_id: Optional[int] = Query(None, alias="inventoryId"),
    type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    List stock movements, newest first.

    Args:
        page: 1-based page number (default: 1)
        limit: Page size (default: 5)
        inventory_id: Only movements of this inventory record
        type: Only INCREASE or DECREASE movements

    Returns:
        Page of movements with total, totalPages and currentPage
    """
    rows, total = movements.list_movements(db, page=page, limit=limit, inventory_id=inventory_id, movement_type=type)
    return schemas.StockMovementPage(
        data=[schemas.StockMovement.model_validate(row) for row in rows],
        total=total,
        total_pages=crud.total_pages(total, limit),
        current_page=page,
    )


@router.get("/export/csv")
def export_stock_movements_csv(db: Session = Depends(get_db)):
    """
    Export the whole movement log to CSV, newest first.

    Returns:
        CSV file with columns: id, inventoryId, type, quantity, serialNumbers, reason, timestamp
    """
    rows, _ = movements.list_movements(db, page=1, limit=100000)

    output = io.StringIO()
    writer = csv.writer(output)

    # Write header
    writer.writerow(['id', 'inventoryId', 'type', 'quantity', 'serialNumbers', 'reason', 'timestamp'])

    # Write data
    for row in rows:
        writer.writerow([
            row.id,
            row.inventory_id,
            row.type,
            row.quantity,
            json.dumps(row.serial_numbers or []),
            row.reason or '',
            row.timestamp.isoformat()
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=stock_movements.csv"}
    )
