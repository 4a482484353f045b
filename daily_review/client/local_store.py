"""
Local Store

Guest-mode persistence. Items and first-record metadata live in the
on-device key-value storage and nowhere else.
"""

import json
import logging
import math
import time
from typing import Callable, List, Optional

from daily_review.client.api import ApiClient
from daily_review.client.errors import DataServiceError, NotFound
from daily_review.client.models import Item, Stats
from daily_review.client.storage import GUEST_MODE_KEY, ITEMS_KEY, USER_KEY, KeyValueStorage
from daily_review.services.review_service import build_fallback_report

logger = logging.getLogger(__name__)

MS_PER_DAY = 1000 * 60 * 60 * 24


def _now_ms(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


def total_days_since(first_record_ms: Optional[int], now_ms: int) -> int:
    """Days on record, counting a started day as a whole one."""
    if not first_record_ms:
        return 0
    return math.ceil(abs(now_ms - first_record_ms) / MS_PER_DAY)


class LocalStore:
    def __init__(self, storage: KeyValueStorage, api: Optional[ApiClient] = None, clock: Callable[[], float] = time.time):
        self.storage = storage
        # Unauthenticated client used only to ask the server for guest reports
        self.api = api
        self.clock = clock

    # --- raw storage ---

    def _load_items(self) -> List[Item]:
        stored = self.storage.read(ITEMS_KEY)
        if not stored:
            return []
        try:
            return [Item.from_dict(data) for data in json.loads(stored)]
        except (ValueError, KeyError, TypeError) as e:
            raise DataServiceError(f"Stored items are unreadable: {e}") from e

    def _save_items(self, items: List[Item]) -> None:
        self.storage.write(ITEMS_KEY, json.dumps([item.to_dict() for item in items], ensure_ascii=False))

    def _load_user_data(self) -> dict:
        stored = self.storage.read(USER_KEY)
        if not stored:
            return {"firstRecordDate": None}
        try:
            data = json.loads(stored)
        except ValueError as e:
            raise DataServiceError(f"Stored user data is unreadable: {e}") from e
        if not isinstance(data, dict):
            raise DataServiceError("Stored user data is unreadable")
        return data

    def _save_user_data(self, data: dict) -> None:
        self.storage.write(USER_KEY, json.dumps(data))

    def _new_id(self, items: List[Item]) -> str:
        """Millisecond timestamp, bumped until unused."""
        taken = {item.id for item in items}
        candidate = _now_ms(self.clock)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    # --- store capabilities ---

    def list(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[Item]:
        """All items, filtered by inclusive date-string bounds when given."""
        items = self._load_items()
        if start_date:
            items = [item for item in items if item.date >= start_date]
        if end_date:
            items = [item for item in items if item.date <= end_date]
        return items

    def add(self, content: str, date: str) -> Item:
        items = self._load_items()
        item = Item(id=self._new_id(items), content=content, date=date, created_at=_now_ms(self.clock))
        items.append(item)
        self._save_items(items)

        # totalDays counts from the first add, not from the earliest item date
        user_data = self._load_user_data()
        if not user_data.get("firstRecordDate"):
            user_data["firstRecordDate"] = item.created_at
            self._save_user_data(user_data)

        return item

    def update(self, item_id: str, content: str, date: str) -> Item:
        items = self._load_items()
        for item in items:
            if item.id == item_id:
                item.content = content
                item.date = date
                self._save_items(items)
                return item
        raise NotFound("Item not found")

    def delete(self, item_id: str) -> None:
        """Removing an id that does not exist is a no-op."""
        items = self._load_items()
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) != len(items):
            self._save_items(remaining)

    def stats(self) -> Stats:
        items = self._load_items()
        first = self._load_user_data().get("firstRecordDate")
        return Stats(
            total_days=total_days_since(first, _now_ms(self.clock)),
            total_items=len(items),
            first_record_date=first,
        )

    def generate_report(self, period_type: str, start_date: str, end_date: str) -> str:
        """Ask the server for a guest report; render the fallback locally if that fails."""
        items = self.list(start_date, end_date)

        if self.api is not None:
            try:
                data = self.api.request(
                    "POST",
                    "/api/review/generate",
                    json={
                        "type": period_type,
                        "startDate": start_date,
                        "endDate": end_date,
                        "items": [item.to_dict() for item in items],
                        "isGuest": True,
                    },
                    authenticated=False,
                )
                if data.get("content"):
                    return data["content"]
            except DataServiceError as e:
                logger.warning(f"Guest report request failed, using fallback: {e}")

        return build_fallback_report(period_type, start_date, end_date, len(items))

    # --- migration support ---

    def all_items(self) -> List[Item]:
        return self._load_items()

    def clear(self) -> None:
        """Forget every guest record, including the guest flag."""
        self.storage.remove(ITEMS_KEY)
        self.storage.remove(USER_KEY)
        self.storage.remove(GUEST_MODE_KEY)
