from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.core.errors import NotFound
from app.db.session import get_db
from app.models.notification import Notification

router = APIRouter(dependencies=[Depends(require_admin)])

class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    body: str
    payload: Optional[dict] = None
    created_at: datetime
    read: bool

    class Config:
        from_attributes = True

@router.get("", response_model=list[NotificationOut])
def list_notifications(unread: bool = False, db: Session = Depends(get_db)):
    q = db.query(Notification)
    if unread:
        q = q.filter(Notification.read == False)  # noqa: E712
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(200).all()

@router.get("/unread-count", response_model=dict)
def unread_count(db: Session = Depends(get_db)):
    count = db.query(Notification).filter(Notification.read == False).count()  # noqa: E712
    return {"unread": count}

@router.post("/{notif_id}/read")
def mark_notification(notif_id: int, db: Session = Depends(get_db)):
    n = db.get(Notification, notif_id)
    if not n:
        raise NotFound("Notification not found")
    n.read = True
    db.commit()
    return {"status": "ok"}

@router.post("/mark-all-read")
def mark_all_read(db: Session = Depends(get_db)):
    db.query(Notification).filter(Notification.read == False).update({Notification.read: True})  # noqa: E712
    db.commit()
    return {"status": "ok"}
