"""Customer routes."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.app.api.errors import raise_for_report
from backend.app.db.session import get_db
from backend.app.models.customer import Customer
from backend.app.schemas.customer import CustomerCreate, CustomerRead, CustomerUpdate
from backend.app.services.validation import validate_customer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

_CUSTOMER_FIELDS = ("name", "address", "gstin", "email", "phone")


def _get_customer(db: Session, customer_id: str) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer


@router.post("/", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
async def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    raise_for_report(validate_customer(payload), payload.acknowledge_warnings)
    customer = Customer(**{field: getattr(payload, field) for field in _CUSTOMER_FIELDS})
    customer.name = customer.name.strip()
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info("Created customer %s", customer.id)
    return customer


@router.get("/", response_model=List[CustomerRead])
async def list_customers(q: str | None = None, db: Session = Depends(get_db)):
    query = db.query(Customer)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.email.ilike(pattern), Customer.phone.ilike(pattern)))
    return query.order_by(Customer.name.asc()).all()


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(customer_id: str, db: Session = Depends(get_db)):
    return _get_customer(db, customer_id)


@router.put("/{customer_id}", response_model=CustomerRead)
async def replace_customer(customer_id: str, payload: CustomerUpdate, db: Session = Depends(get_db)):
    customer = _get_customer(db, customer_id)
    raise_for_report(validate_customer(payload), payload.acknowledge_warnings)
    for field in _CUSTOMER_FIELDS:
        setattr(customer, field, getattr(payload, field))
    customer.name = customer.name.strip()
    db.commit()
    db.refresh(customer)
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: str, db: Session = Depends(get_db)):
    # Invoices keep their customer snapshot.
    customer = _get_customer(db, customer_id)
    db.delete(customer)
    db.commit()
    logger.info("Deleted customer %s", customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
