"""Discount code administration.

Codes are stored upper-case and unique. Bookings keep their own snapshot of
the code they used, so editing, deactivating or deleting a code here never
changes an existing booking.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy import asc, true, update
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.api.serializers import discount_out
from app.core.errors import NotFound, StateConflict, ValidationError
from app.db.session import get_db
from app.models.discount_code import DiscountCode
from app.schemas.discount import DiscountIn, DiscountUpdate
from app.services.pricing import normalize_code

router = APIRouter(dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)

def _get_discount(db: Session, discount_id: int) -> DiscountCode:
    d = db.get(DiscountCode, discount_id)
    if d is None:
        raise NotFound("Discount code not found")
    return d

@router.get("", response_model=List[dict])
def list_discounts(db: Session = Depends(get_db)):
    return [discount_out(d) for d in db.query(DiscountCode).order_by(asc(DiscountCode.id)).all()]

@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
def create_discount(payload: DiscountIn, db: Session = Depends(get_db)):
    code = normalize_code(payload.code)
    if db.query(DiscountCode.id).filter(DiscountCode.code == code).first() is not None:
        raise StateConflict(f"Discount code {code} already exists")
    d = DiscountCode(
        code=code,
        name=payload.name.strip(),
        category=payload.category,
        value=payload.value,
        valid_until=payload.valid_until,
        usage_limit=1 if payload.one_time else payload.usage_limit,
        one_time=payload.one_time,
        used_count=0,
        is_active=payload.is_active,
    )
    db.add(d)
    db.commit()
    db.refresh(d)
    logger.info("Discount code %s created (%s, %s)", d.code, d.category, d.value)
    return discount_out(d)

@router.put("/{discount_id}", response_model=dict)
def update_discount(discount_id: int, payload: DiscountUpdate, db: Session = Depends(get_db)):
    d = _get_discount(db, discount_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name"):
        d.name = changes["name"].strip()
    if "valid_until" in changes:
        d.valid_until = changes["valid_until"]
    if changes.get("is_active") is not None:
        d.is_active = changes["is_active"]

    one_time = d.one_time if changes.get("one_time") is None else changes["one_time"]
    if one_time:
        limit = 1
    elif "usage_limit" in changes:
        limit = changes["usage_limit"]
    elif d.one_time:
        # leaving one-time mode without a new limit makes the code unlimited
        limit = None
    else:
        limit = d.usage_limit
    # checked against the stored count in the same statement so a concurrent redemption cannot slip under it
    guard = DiscountCode.used_count <= limit if limit is not None else true()
    result = db.execute(
        update(DiscountCode)
        .where(DiscountCode.id == d.id, guard)
        .values(one_time=one_time, usage_limit=limit)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(d)
        raise ValidationError(
            f"Usage limit cannot be lower than the {d.used_count} time(s) this code was already used",
            field="usage_limit",
        )
    db.commit()
    db.refresh(d)
    return discount_out(d)

@router.delete("/{discount_id}", response_model=dict)
def delete_discount(discount_id: int, db: Session = Depends(get_db)):
    d = _get_discount(db, discount_id)
    db.delete(d)
    db.commit()
    logger.info("Discount code %s deleted", d.code)
    return {"status": "deleted", "id": discount_id}
