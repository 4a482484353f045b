from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from daily_review.categories import parse_category


@dataclass
class Item:
    id: str
    content: str
    date: str
    created_at: int
    user_id: Optional[str] = None

    @property
    def category(self) -> str:
        return parse_category(self.content)[0]

    @property
    def display_text(self) -> str:
        return parse_category(self.content)[1]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            id=str(data["id"]),
            content=data["content"],
            date=data["date"],
            created_at=int(data.get("createdAt") or 0),
            user_id=data.get("user_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "content": self.content,
            "date": self.date,
            "createdAt": self.created_at,
        }
        if self.user_id is not None:
            data["user_id"] = self.user_id
        return data


@dataclass
class Stats:
    total_days: int
    total_items: int
    first_record_date: Optional[int]


@dataclass
class MigrationResult:
    success: bool
    count: int
    total: int = 0


@dataclass
class MultiAddResult:
    """Outcome of adding one item per category."""
    succeeded: List[Tuple[str, Item]] = field(default_factory=list)
    failed: List[Tuple[str, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed_categories(self) -> List[str]:
        return [category for category, _ in self.failed]


@dataclass
class UserSession:
    kind: str  # "guest" or "authenticated"
    access_token: Optional[str] = None
    user_id: Optional[str] = None
    username: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return self.kind == "guest"

    @classmethod
    def guest(cls) -> "UserSession":
        return cls(kind="guest")
