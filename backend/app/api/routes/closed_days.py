import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import asc
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.core.errors import NotFound, ValidationError
from app.db.session import get_db
from app.models.closed_day import ClosedDay
from app.schemas.tour import DATE_PATTERN

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_REASON = "Manually closed"


class ClosedDayIn(BaseModel):
    date: str = Field(..., pattern=DATE_PATTERN)
    reason: Optional[str] = Field(None, max_length=255)


def _out(c: ClosedDay) -> dict:
    return {"id": c.id, "date": c.date, "reason": c.reason}

def _check_date(value: str) -> None:
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValidationError("date must be a valid YYYY-MM-DD date", field="date")


@router.get("", response_model=List[dict])
def list_closed_days(db: Session = Depends(get_db)):
    return [_out(c) for c in db.query(ClosedDay).order_by(asc(ClosedDay.date)).all()]

@router.post("", dependencies=[Depends(require_admin)], response_model=dict, status_code=status.HTTP_201_CREATED)
def close_day(payload: ClosedDayIn, db: Session = Depends(get_db)):
    """Close a date for every tour. Closing an already closed date returns the existing row."""
    _check_date(payload.date)
    existing = db.query(ClosedDay).filter(ClosedDay.date == payload.date).first()
    if existing:
        return _out(existing)
    c = ClosedDay(date=payload.date, reason=(payload.reason or "").strip() or DEFAULT_REASON)
    db.add(c)
    db.commit()
    db.refresh(c)
    logger.info("Closed %s: %s", c.date, c.reason)
    return _out(c)

@router.delete("/{day}", dependencies=[Depends(require_admin)], response_model=dict)
def reopen_day(day: str, db: Session = Depends(get_db)):
    c = db.query(ClosedDay).filter(ClosedDay.date == day).first()
    if not c:
        raise NotFound("Date is not closed")
    db.delete(c)
    db.commit()
    logger.info("Reopened %s", day)
    return {"status": "deleted", "date": day}
