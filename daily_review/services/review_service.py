"""
Review Report Service

Turns the items of a week or month into a Markdown review written by
Anthropic Claude. Upstream failures never reach the caller: a fixed
template is returned instead. Reports for signed-in users are cached per
(user, type, start, end).
"""

import logging
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

import anthropic
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daily_review.config import (
    REVIEW_MAX_TOKENS,
    REVIEW_MODEL,
    REVIEW_TEMPERATURE,
    get_anthropic_api_key,
    local_today,
)
from daily_review.models import ReviewItem, ReviewReport
from daily_review.services.validators import parse_date

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["周一", "周二", "周三", "周四", "周五", "周六", "周日"]

SYSTEM_PROMPT = """你是一位专业的复盘助手，帮助用户分析他们在工作、学习或生活中的记录事项。

用户的事项可能带有分类前缀：【基础】表示日常基础固定动作，【蓄能】表示文娱与自我提升，【创造】表示工作与收入相关的产出。

你的任务是：
1. 分析用户在指定时间段内的记录事项
2. 总结整体情况和亮点
3. 指出需要改进的地方
4. 给出具体的行动建议

请用友好、鼓励的语气撰写复盘报告，使用中文。

回复格式要求：
- 使用 Markdown 格式
- 包含以下四个部分：整体总结、主要亮点、需要关注、下一步建议
- 每个部分用 ## 标题
- 适当使用列表和粗体增强可读性
- 语言简洁有力，避免冗长"""


def period_label(period_type: str) -> str:
    return "周" if period_type == "week" else "月"


def current_period(period_type: str, today: Optional[date] = None) -> Tuple[str, str]:
    """Bounds of the week (Monday to Sunday) or calendar month containing ``today``.

    ``today`` defaults to the current date in the app timezone.
    """
    today = today or local_today()
    if period_type == "week":
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=6)
    else:
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        end = next_month - timedelta(days=1)
    return start.isoformat(), end.isoformat()


def _field(item, key):
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def group_items_by_date(items: Iterable) -> "OrderedDict[str, List]":
    """Group items by their exact date string, dates ascending.

    Items keep their given order inside a date.
    """
    groups: Dict[str, List] = {}
    for item in items:
        groups.setdefault(str(_field(item, "date")), []).append(item)
    return OrderedDict(sorted(groups.items()))


def weekday_name(date_str: str) -> str:
    parsed = parse_date(date_str)
    if parsed is None:
        return ""
    return WEEKDAY_NAMES[parsed.weekday()]


def render_item_groups(items: Iterable) -> str:
    """Render items as a heading per date followed by a numbered list."""
    sections = []
    for date_str, day_items in group_items_by_date(items).items():
        heading = f"### {date_str} {weekday_name(date_str)}".rstrip()
        lines = [heading]
        for index, item in enumerate(day_items, start=1):
            lines.append(f"{index}. {_field(item, 'content')}")
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def build_user_prompt(items: List, period_type: str, start_date: str, end_date: str) -> str:
    rendered = render_item_groups(items) or "暂无记录"
    return f"""请为以下{period_label(period_type)}度记录生成复盘报告：

时间范围：{start_date} 至 {end_date}
记录总数：{len(items)} 条

记录事项：
{rendered}

请根据以上内容生成详细的复盘分析。"""


def build_fallback_report(period_type: str, start_date: str, end_date: str, item_count: int) -> str:
    """Deterministic report used whenever the completion API is unavailable."""
    has_items = item_count > 0
    opening = "保持记录的习惯是成长的第一步！" if has_items else "暂无记录，开始记录你的第一条事项吧！"
    first_highlight = "坚持记录的习惯值得肯定" if has_items else "即将开始你的记录之旅"
    return f"""## 整体总结

在这个{period_label(period_type)}（{start_date} 至 {end_date}），你共记录了 {item_count} 条事项。{opening}

## 主要亮点

- {first_highlight}
- 每一次记录都是对自己的反思
- 持续积累将带来质的飞跃

## 需要关注

- 建议增加记录的详细程度
- 可以尝试分类记录不同领域的事项
- 保持每日记录的连续性

## 下一步建议

1. **保持习惯**：继续坚持每日记录
2. **深入思考**：在记录时多思考原因和改进方向
3. **定期复盘**：养成定期回顾的习惯
4. **设定目标**：为下个周期设定具体的小目标

> 复盘是成长的重要环节，继续加油！"""


class ReviewReportGenerator:
    """Asks Claude for a review of a period, falling back to a template."""

    def __init__(self, client=None, api_key: Optional[str] = None, model: str = REVIEW_MODEL):
        if client is None:
            api_key = api_key or get_anthropic_api_key()
            if api_key:
                client = anthropic.Anthropic(api_key=api_key)
        self.client = client
        self.model = model

    def generate(self, items: List, period_type: str, start_date: str, end_date: str) -> str:
        """
        Generate a Markdown review for ``items``.

        Args:
            items: dicts or objects with ``date`` and ``content``
            period_type: "week" or "month"
            start_date: inclusive period start, YYYY-MM-DD
            end_date: inclusive period end, YYYY-MM-DD

        Returns:
            Markdown text; never empty
        """
        fallback = build_fallback_report(period_type, start_date, end_date, len(items))

        if self.client is None:
            logger.info("No completion API key configured, using fallback report")
            return fallback

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=REVIEW_MAX_TOKENS,
                temperature=REVIEW_TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": build_user_prompt(items, period_type, start_date, end_date),
                }],
            )
        except Exception as e:
            logger.error(f"Completion API call failed: {e}")
            return fallback

        text = "".join(
            block.text for block in (response.content or []) if getattr(block, "type", None) == "text"
        ).strip()
        if not text:
            logger.warning("Completion API returned no text, using fallback report")
            return fallback
        return text


# ============================================================
# CACHE
# ============================================================

def get_cached_report(db: Session, user_id: str, period_type: str, start_date, end_date) -> Optional[ReviewReport]:
    return (
        db.query(ReviewReport)
        .filter(
            ReviewReport.user_id == user_id,
            ReviewReport.report_type == period_type,
            ReviewReport.start_date == start_date,
            ReviewReport.end_date == end_date,
        )
        .first()
    )


def save_report(db: Session, user_id: str, period_type: str, start_date, end_date, content: str) -> bool:
    """Best-effort cache write. Returns False instead of raising."""
    try:
        db.add(ReviewReport(
            user_id=user_id,
            report_type=period_type,
            start_date=start_date,
            end_date=end_date,
            content=content,
        ))
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to cache {period_type} report for user {user_id}: {e}")
        return False


def fetch_period_items(db: Session, user_id: str, start_date, end_date) -> List[dict]:
    rows = (
        db.query(ReviewItem)
        .filter(
            ReviewItem.user_id == user_id,
            ReviewItem.record_date >= start_date,
            ReviewItem.record_date <= end_date,
        )
        .order_by(ReviewItem.record_date.asc(), ReviewItem.created_at.asc())
        .all()
    )
    return [row.to_dict() for row in rows]


def generate_review(
    db: Session,
    generator: ReviewReportGenerator,
    period_type: str,
    start_date: str,
    end_date: str,
    user_id: Optional[str] = None,
    guest_items: Optional[List] = None,
) -> Tuple[str, bool]:
    """
    Produce a review, consulting the cache for signed-in users.

    With ``user_id`` the items come from the database and the result is
    cached; without it ``guest_items`` are used as given.

    Returns:
        (content, cached)
    """
    if user_id is None:
        return generator.generate(list(guest_items or []), period_type, start_date, end_date), False

    start = parse_date(start_date)
    end = parse_date(end_date)

    cached = get_cached_report(db, user_id, period_type, start, end)
    if cached:
        return cached.content, True

    items = fetch_period_items(db, user_id, start, end)
    content = generator.generate(items, period_type, start_date, end_date)
    save_report(db, user_id, period_type, start, end, content)
    return content, False
