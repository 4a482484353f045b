"""
Item categories

Content may start with one of three fixed tags. The tag is the only place a
category lives, so re-tagging an item is a plain string change.
"""

from typing import Dict, Iterable, List, Tuple

BASIC = "basic"
ENERGY = "energy"
CREATE = "create"
OTHER = "other"

CATEGORY_PREFIXES = {
    BASIC: "【基础】",
    ENERGY: "【蓄能】",
    CREATE: "【创造】",
}

CATEGORY_LABELS = {
    BASIC: "基础",
    ENERGY: "蓄能",
    CREATE: "创造",
    OTHER: "其他",
}

# Display order within a day
CATEGORY_ORDER = [BASIC, ENERGY, CREATE, OTHER]


def parse_category(content: str) -> Tuple[str, str]:
    """Return ``(category, display_text)`` for a piece of content.

    The first prefix found wins; untagged content is ``other`` and is shown
    as written.
    """
    for category in (BASIC, ENERGY, CREATE):
        prefix = CATEGORY_PREFIXES[category]
        if prefix in content:
            return category, content.replace(prefix, "", 1).strip()
    return OTHER, content


def compose_content(category: str, text: str) -> str:
    """Apply the category prefix to ``text``."""
    if category not in CATEGORY_ORDER:
        raise ValueError(f"Unknown category: {category}")
    text = text.strip()
    if category == OTHER:
        return text
    return f"{CATEGORY_PREFIXES[category]}{text}"


def _item_value(item, key):
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def sort_day_items(items: Iterable) -> List:
    """Order one day's items by category, then by creation time."""
    def sort_key(item):
        category, _ = parse_category(_item_value(item, "content") or "")
        created = _item_value(item, "createdAt")
        if created is None:
            created = _item_value(item, "created_at")
        return (CATEGORY_ORDER.index(category), created or 0)

    return sorted(items, key=sort_key)


def group_by_category(items: Iterable) -> Dict[str, List]:
    """Bucket items by category, keeping every category key."""
    groups: Dict[str, List] = {category: [] for category in CATEGORY_ORDER}
    for item in sort_day_items(items):
        category, _ = parse_category(_item_value(item, "content") or "")
        groups[category].append(item)
    return groups
