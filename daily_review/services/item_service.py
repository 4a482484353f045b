"""
Item Migration Service

Bulk import of guest-mode items into a signed-in user's account.

Items are inserted in batches of 100, each in its own transaction. A failing
batch is logged and skipped; the caller gets the number of items that made
it in. Items carry their guest id as ``source_id`` and ids already present
for the user are skipped, so a retry after a partial failure does not
duplicate the batches that succeeded.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daily_review.config import from_epoch_ms
from daily_review.models import ReviewItem, UserProfile
from daily_review.services.validators import parse_date

logger = logging.getLogger(__name__)

MIGRATION_BATCH_SIZE = 100


def prepare_migration_rows(user_id: str, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert client items to row values, dropping malformed entries."""
    rows = []
    for item in items:
        if not isinstance(item, dict):
            continue
        content = (item.get("content") or "").strip() if isinstance(item.get("content"), str) else ""
        record_date = parse_date(item.get("date"))
        if not content or record_date is None:
            logger.warning(f"Skipping malformed migration item: {item!r}")
            continue

        created_at = datetime.utcnow()
        created_ms = item.get("createdAt")
        if isinstance(created_ms, (int, float)) and not isinstance(created_ms, bool) and created_ms > 0:
            # Keep the guest-side creation time
            try:
                created_at = from_epoch_ms(int(created_ms))
            except (ValueError, OverflowError, OSError):
                logger.warning(f"Ignoring out-of-range createdAt {created_ms!r} on migration item {item.get('id')!r}")

        source_id = item.get("id")
        rows.append({
            "user_id": user_id,
            "content": content,
            "record_date": record_date,
            "created_at": created_at,
            "source_id": str(source_id) if source_id not in (None, "") else None,
        })
    return rows


def _existing_source_ids(db: Session, user_id: str, source_ids: List[str]) -> set:
    if not source_ids:
        return set()
    found = (
        db.query(ReviewItem.source_id)
        .filter(ReviewItem.user_id == user_id, ReviewItem.source_id.in_(source_ids))
        .all()
    )
    return {row[0] for row in found}


def insert_batch(db: Session, user_id: str, batch: List[Dict[str, Any]]) -> None:
    """Insert one batch in a single transaction, skipping already-migrated ids."""
    existing = _existing_source_ids(db, user_id, [r["source_id"] for r in batch if r["source_id"]])
    seen = set()
    for row in batch:
        source_id = row["source_id"]
        if source_id and (source_id in existing or source_id in seen):
            continue
        if source_id:
            seen.add(source_id)
        db.add(ReviewItem(**row))
    db.commit()


def migrate_items(
    db: Session,
    user_id: str,
    items: List[Dict[str, Any]],
    batch_size: int = MIGRATION_BATCH_SIZE,
) -> Tuple[int, int]:
    """
    Import guest items for ``user_id``.

    Returns:
        (migrated_count, total_items)
    """
    rows = prepare_migration_rows(user_id, items)
    migrated = 0

    for start in range(0, len(rows), batch_size):
        batch = rows[start:start + batch_size]
        try:
            insert_batch(db, user_id, batch)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Migration batch {start // batch_size + 1} failed for user {user_id}: {e}")
            continue
        migrated += len(batch)

    if migrated:
        _stamp_profile(db, user_id)

    logger.info(f"Migrated {migrated}/{len(items)} items for user {user_id}")
    return migrated, len(items)


def _stamp_profile(db: Session, user_id: str) -> None:
    profile = db.query(UserProfile).filter(UserProfile.id == user_id).first()
    if not profile:
        return
    try:
        profile.guest_migrated_at = datetime.utcnow()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not stamp guest migration for user {user_id}: {e}")
