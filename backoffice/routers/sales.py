"""
Sales endpoints.

Creating, updating and deleting a sale moves stock through the reconciler;
the read endpoints attach product summaries to each sale item.
"""
import csv
import io
import json
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from .. import crud, reconciler, schemas, webhooks
from ..database import get_db

router = APIRouter(prefix="/sales", tags=["sales"])


@router.get("", response_model=schemas.SalePage)
def list_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: str = "desc",
    db: Session = Depends(get_db),
):
    """
    List sales with pagination, search and sorting.

    Args:
        page: 1-based page number (default: 1)
        limit: Page size (default: 10)
        search: Case-insensitive match on sale number or client name
        sort_by: Sort field, e.g. dateOfPurchase (default), clientName, saleID
        order: "asc" or "desc" (default)

    Returns:
        Page of sales with totalPages and currentPage
    """
    sales, total = crud.get_sales(db, page=page, limit=limit, search=search, sort_by=sort_by, order=order)
    return schemas.SalePage(
        data=crud.serialize_sales(db, sales),
        total_pages=crud.total_pages(total, limit),
        current_page=page,
    )


@router.get("/export/csv")
def export_sales_csv(db: Session = Depends(get_db)):
    """
    Export all sales to CSV.

    Returns:
        CSV file with columns: id, saleID, clientName, overallTotalAmount, status, dateOfPurchase, items_json
    """
    sales, _ = crud.get_sales(db, page=1, limit=10000, sort_by="saleID", order="asc")

    output = io.StringIO()
    writer = csv.writer(output)

    # Write header
    writer.writerow(['id', 'saleID', 'clientName', 'overallTotalAmount', 'status', 'dateOfPurchase', 'items_json'])

    # Write data
    for sale in sales:
        writer.writerow([
            sale.id,
            sale.sale_id,
            sale.client_name,
            str(sale.overall_total_amount),
            sale.status,
            sale.date_of_purchase.isoformat(),
            json.dumps(sale.items or [])
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=sales.csv"}
    )


@router.get("/{sale_pk}", response_model=schemas.Sale)
def get_sale(sale_pk: int, db: Session = Depends(get_db)):
    """
    Get a single sale by ID, with product summaries.

    Raises:
        NotFound: 404 if the sale does not exist
    """
    return crud.serialize_sale(db, reconciler.get_sale(db, sale_pk))


@router.post("", response_model=schemas.SaleResult, status_code=status.HTTP_201_CREATED)
async def create_sale(sale: schemas.SaleCreate, db: Session = Depends(get_db)):
    """
    Create a sale and deduct its items from inventory.

    Each item is priced from the product catalog, taken out of stock and
    logged as a "Sale deduction" movement. Nothing is kept if any item fails.

    Raises:
        ValidationError: 400 if fields or items are missing
        NotFound: 404 if a product or inventory record does not exist
        InsufficientStock: 400 if an item exceeds the stock on hand
    """
    db_sale = reconciler.create_sale(db, sale)
    result = crud.serialize_sale(db, db_sale)
    webhooks.notify_sale_created(result.model_dump(mode="json", by_alias=True))
    return schemas.SaleResult(message="Sale created successfully", sale=result)


@router.put("/{sale_pk}", response_model=schemas.SaleResult)
async def update_sale(sale_pk: int, sale: schemas.SaleUpdate, db: Session = Depends(get_db)):
    """
    Replace a sale's items and details, moving stock to match.

    Old items are put back into stock ("Sale update reversal") before the new
    items are deducted ("Sale update deduction").

    Raises:
        NotFound: 404 if the sale, a product or an inventory record does not exist
        ValidationError / InsufficientStock: 400
    """
    db_sale = reconciler.update_sale(db, sale_pk, sale)
    result = crud.serialize_sale(db, db_sale)
    webhooks.notify_sale_updated(result.model_dump(mode="json", by_alias=True))
    return schemas.SaleResult(message="Sale updated successfully", sale=result)


@router.delete("/{sale_pk}", response_model=schemas.Message)
async def delete_sale(sale_pk: int, db: Session = Depends(get_db)):
    """
    Delete a sale and restore its items to inventory.

    Raises:
        NotFound: 404 if the sale does not exist
    """
    sale_number = reconciler.delete_sale(db, sale_pk)
    webhooks.notify_sale_deleted(sale_pk, sale_number)
    return schemas.Message(message="Sale deleted and inventory updated accordingly")
