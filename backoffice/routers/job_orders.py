"""
Job order endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..exceptions import NotFound

router = APIRouter(prefix="/job-orders", tags=["job-orders"])


@router.post("", response_model=schemas.JobOrderResult, status_code=status.HTTP_201_CREATED)
def create_job_order(job_order: schemas.JobOrderCreate, db: Session = Depends(get_db)):
    """
    Create a job order for a sale. The client name is taken from the sale.

    Raises:
        NotFound: 404 if the sale does not exist
    """
    db_job_order = crud.create_job_order(db, job_order)
    return schemas.JobOrderResult(message="Job Order created successfully", job_order=schemas.JobOrder.model_validate(db_job_order))


@router.get("", response_model=schemas.JobOrderPage)
def list_job_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: str = "desc",
    db: Session = Depends(get_db),
):
    """
    List job orders with pagination, search and sorting.

    Args:
        page: 1-based page number (default: 1)
        limit: Page size (default: 10)
        search: Case-insensitive match on job order number or client name
        sort_by: Sort field, e.g. installationDate (default), clientName, jobOrderID
        order: "asc" or "desc" (default)
    """
    job_orders, total = crud.get_job_orders(db, page=page, limit=limit, search=search, sort_by=sort_by, order=order)
    return schemas.JobOrderPage(
        data=[schemas.JobOrder.model_validate(row) for row in job_orders],
        total_pages=crud.total_pages(total, limit),
        current_page=page,
    )


@router.get("/{job_order_pk}", response_model=schemas.JobOrder)
def get_job_order(job_order_pk: int, db: Session = Depends(get_db)):
    """Get a single job order by ID."""
    db_job_order = crud.get_job_order(db, job_order_pk)
    if db_job_order is None:
        raise NotFound("Job Order not found")
    return db_job_order


@router.put("/{job_order_pk}", response_model=schemas.JobOrderResult)
def update_job_order(job_order_pk: int, job_order: schemas.JobOrderUpdate, db: Session = Depends(get_db)):
    """
    Replace a job order.

    Raises:
        NotFound: 404 if the job order or the sale does not exist
    """
    db_job_order = crud.update_job_order(db, job_order_pk, job_order)
    return schemas.JobOrderResult(message="Job Order updated successfully", job_order=schemas.JobOrder.model_validate(db_job_order))


@router.delete("/{job_order_pk}", response_model=schemas.Message)
def delete_job_order(job_order_pk: int, db: Session = Depends(get_db)):
    """Delete a job order."""
    crud.delete_job_order(db, job_order_pk)
    return schemas.Message(message="Job Order deleted successfully")
