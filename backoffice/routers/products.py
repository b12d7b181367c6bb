"""
Product catalog endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..exceptions import NotFound

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=schemas.ProductPage)
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    List products, optionally filtered by name or SKU.

    Args:
        page: 1-based page number (default: 1)
        limit: Page size (default: 10)
        search: Case-insensitive match on product name or SKU
    """
    products, total = crud.get_products(db, page=page, limit=limit, search=search)
    return schemas.ProductPage(
        data=[schemas.Product.model_validate(row) for row in products],
        total=total,
        total_pages=crud.total_pages(total, limit),
        current_page=page,
    )


@router.get("/{product_id}", response_model=schemas.Product)
def get_product(product_id: int, db: Session = Depends(get_db)):
    """Get a single product by ID."""
    db_product = crud.get_product(db, product_id=product_id)
    if db_product is None:
        raise NotFound("Product not found")
    return db_product


@router.post("", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
def create_product(product: schemas.ProductCreate, db: Session = Depends(get_db)):
    """
    Create a new product.

    Raises:
        ValidationError: 400 if the SKU already exists
    """
    return crud.create_product(db, product)


@router.put("/{product_id}", response_model=schemas.Product)
def update_product(product_id: int, product: schemas.ProductUpdate, db: Session = Depends(get_db)):
    """Update a product. Recorded sale totals keep the price they were sold at."""
    return crud.update_product(db, product_id, product)


@router.delete("/{product_id}", response_model=schemas.Message)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """
    Delete a product.

    Raises:
        ValidationError: 400 while the product still has an inventory record
    """
    crud.delete_product(db, product_id)
    return schemas.Message(message="Product deleted successfully")
