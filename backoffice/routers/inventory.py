"""
Inventory record endpoints.

Stock levels are read here but only change through stock movements and
sales; there is no endpoint that edits or deletes a record's stock.
"""
import os
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, ledger, schemas
from ..database import get_db

LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "20"))

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=List[schemas.InventoryItem])
def list_inventory_items(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """
    List inventory records with pagination.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100)
    """
    return crud.get_inventory_items(db, skip=skip, limit=limit)


@router.get("/analytics")
def get_analytics(db: Session = Depends(get_db)):
    """
    Get inventory analytics.

    Returns:
        dict: totalItems, totalQuantity, outOfStock, lowStock and the low stock records
    """
    return crud.get_inventory_analytics(db, LOW_STOCK_THRESHOLD)


@router.get("/product/{product_id}", response_model=schemas.InventoryItem)
def get_inventory_by_product(product_id: int, db: Session = Depends(get_db)):
    """
    Get the inventory record of a product.

    Raises:
        NotFound: 404 if the product has no inventory record
    """
    return ledger.get_by_product(db, product_id)


@router.get("/{inventory_id}", response_model=schemas.InventoryItem)
def get_inventory_item(inventory_id: int, db: Session = Depends(get_db)):
    """
    Get a single inventory record by ID.

    Raises:
        NotFound: 404 if the record does not exist
    """
    return ledger.get_inventory(db, inventory_id)


@router.post("", response_model=schemas.InventoryItem, status_code=status.HTTP_201_CREATED)
def create_inventory_item(item: schemas.InventoryItemCreate, db: Session = Depends(get_db)):
    """
    Create the inventory record of a product.

    Raises:
        NotFound: 404 if the product does not exist
        ValidationError: 400 if the product already has a record or the serials do not match
    """
    return crud.create_inventory_item(db, item)
