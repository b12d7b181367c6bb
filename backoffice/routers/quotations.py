"""
Quotation endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db

router = APIRouter(prefix="/quotations", tags=["quotations"])


@router.get("", response_model=List[schemas.Quotation])
def list_quotations(db: Session = Depends(get_db)):
    """List all quotations, newest first."""
    return crud.get_quotations(db)


@router.post("", response_model=schemas.Quotation, status_code=status.HTTP_201_CREATED)
def create_quotation(quotation: schemas.QuotationCreate, db: Session = Depends(get_db)):
    """Create a quotation. The quotation number is assigned by the server."""
    return crud.create_quotation(db, quotation)
