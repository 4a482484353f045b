"""
Remote Store

Signed-in persistence through the HTTP API. Ownership checks happen on the
server; 403 and 404 come back as ``Forbidden`` and ``NotFound``.
"""

import time
from typing import Callable, List, Optional, Tuple

from daily_review.client.api import ApiClient
from daily_review.client.local_store import total_days_since
from daily_review.client.models import Item, Stats


class RemoteStore:
    def __init__(self, api: ApiClient, clock: Callable[[], float] = time.time):
        self.api = api
        self.clock = clock

    def list(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[Item]:
        params = {}
        if start_date:
            params["startDate"] = start_date
        if end_date:
            params["endDate"] = end_date
        data = self.api.request("GET", "/api/items", params=params or None)
        return [Item.from_dict(item) for item in data.get("items", [])]

    def add(self, content: str, date: str) -> Item:
        data = self.api.request("POST", "/api/items", json={"content": content, "date": date})
        return Item.from_dict(data["item"])

    def update(self, item_id: str, content: str, date: str) -> Item:
        data = self.api.request("PUT", "/api/items", params={"id": item_id}, json={"content": content, "date": date})
        return Item.from_dict(data["item"])

    def delete(self, item_id: str) -> None:
        self.api.request("DELETE", "/api/items", params={"id": item_id})

    def stats(self) -> Stats:
        items = self.list()
        # Same definition as guest mode: first creation time, not earliest item date
        first = min((item.created_at for item in items), default=None)
        return Stats(
            total_days=total_days_since(first, int(self.clock() * 1000)),
            total_items=len(items),
            first_record_date=first,
        )

    def generate_report(self, period_type: str, start_date: str, end_date: str) -> str:
        data = self.api.request(
            "POST",
            "/api/review/generate",
            json={"type": period_type, "startDate": start_date, "endDate": end_date},
        )
        return data["content"]

    def migrate(self, items: List[Item]) -> Tuple[int, int]:
        """Upload guest items in one call. Returns (migrated, total)."""
        data = self.api.request(
            "POST",
            "/api/items/migrate",
            json={"items": [item.to_dict() for item in items]},
        )
        return int(data.get("migratedCount") or 0), int(data.get("totalItems", len(items)))
