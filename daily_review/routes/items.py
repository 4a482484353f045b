import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daily_review.auth import get_current_user
from daily_review.database import get_db
from daily_review.models import ReviewItem, User
from daily_review.services.item_service import migrate_items
from daily_review.services.validators import parse_date, validate_item

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/items", tags=["items"])


class ItemPayload(BaseModel):
    content: Optional[str] = None
    date: Optional[str] = None


class MigratePayload(BaseModel):
    items: Optional[Any] = None


def _owned_item(db: Session, item_id: Optional[str], user: User) -> ReviewItem:
    """Load an item for mutation; 404 if absent, 403 if someone else's."""
    if not item_id:
        raise HTTPException(status_code=400, detail="Item ID is required")

    item = db.query(ReviewItem).filter(ReviewItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    if item.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return item


@router.get("")
def list_items(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's items, optionally bounded by inclusive dates."""
    query = db.query(ReviewItem).filter(ReviewItem.user_id == user.id)

    if startDate:
        start = parse_date(startDate)
        if start is None:
            raise HTTPException(status_code=400, detail="startDate must be in YYYY-MM-DD format")
        query = query.filter(ReviewItem.record_date >= start)

    if endDate:
        end = parse_date(endDate)
        if end is None:
            raise HTTPException(status_code=400, detail="endDate must be in YYYY-MM-DD format")
        query = query.filter(ReviewItem.record_date <= end)

    items = query.order_by(ReviewItem.record_date.desc(), ReviewItem.created_at.asc()).all()
    return {"items": [item.to_dict() for item in items]}


@router.post("", status_code=201)
def create_item(
    payload: ItemPayload,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        record_date = validate_item(payload.content, payload.date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    item = ReviewItem(user_id=user.id, content=payload.content.strip(), record_date=record_date)
    try:
        db.add(item)
        db.commit()
        db.refresh(item)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Create item error: {e}")
        raise HTTPException(status_code=500, detail="Failed to create item")

    return {"item": item.to_dict()}


@router.put("")
def update_item(
    payload: ItemPayload,
    id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = _owned_item(db, id, user)

    try:
        record_date = validate_item(payload.content, payload.date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        item.content = payload.content.strip()
        item.record_date = record_date
        db.commit()
        db.refresh(item)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Update item error: {e}")
        raise HTTPException(status_code=500, detail="Failed to update item")

    return {"item": item.to_dict()}


@router.delete("")
def delete_item(
    id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = _owned_item(db, id, user)

    try:
        db.delete(item)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Delete item error: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete item")

    return {"success": True}


@router.post("/migrate")
def migrate(
    payload: MigratePayload,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Bulk-import guest items. Reports how many of the items were stored."""
    if not isinstance(payload.items, list):
        raise HTTPException(status_code=400, detail="Items array is required")

    if not payload.items:
        return {"success": True, "migratedCount": 0, "totalItems": 0}

    migrated, total = migrate_items(db, user.id, payload.items)
    return {
        "success": True,
        "migratedCount": migrated,
        "totalItems": total,
    }
