"""
Tests for weekly/monthly review generation: prompt rendering, fallback and
the per-period cache.
"""

from datetime import date
from types import SimpleNamespace

from sqlalchemy.exc import OperationalError

from daily_review.models import ReviewReport
from daily_review.routes.review import get_report_generator
from daily_review.main import app
from daily_review.services.review_service import (
    ReviewReportGenerator,
    build_fallback_report,
    build_user_prompt,
    current_period,
    generate_review,
    render_item_groups,
)


class FakeMessages:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


class FakeAnthropic:
    def __init__(self, text="## 整体总结\n\n很好", error=None):
        self.messages = FakeMessages(text=text, error=error)


class TestRenderItems:
    """Tests for prompt rendering."""

    def test_groups_by_date_ascending(self):
        items = [
            {"date": "2024-03-05", "content": "B"},
            {"date": "2024-03-04", "content": "A"},
            {"date": "2024-03-05", "content": "C"},
        ]

        rendered = render_item_groups(items)

        assert rendered == "### 2024-03-04 周一\n1. A\n\n### 2024-03-05 周二\n1. B\n2. C"

    def test_empty_period_prompt(self):
        prompt = build_user_prompt([], "week", "2024-03-04", "2024-03-10")

        assert "暂无记录" in prompt
        assert "记录总数：0 条" in prompt
        assert "周度记录" in prompt


class TestCurrentPeriod:
    """Weeks run Monday to Sunday; months are calendar months."""

    def test_week_from_midweek(self):
        assert current_period("week", date(2024, 3, 6)) == ("2024-03-04", "2024-03-10")

    def test_week_from_sunday(self):
        assert current_period("week", date(2024, 3, 10)) == ("2024-03-04", "2024-03-10")

    def test_leap_february(self):
        assert current_period("month", date(2024, 2, 15)) == ("2024-02-01", "2024-02-29")

    def test_december(self):
        assert current_period("month", date(2024, 12, 31)) == ("2024-12-01", "2024-12-31")


class TestFallbackReport:
    """Tests for the template used when the completion API is unavailable."""

    def test_has_four_sections(self):
        report = build_fallback_report("month", "2024-03-01", "2024-03-31", 12)

        for heading in ("## 整体总结", "## 主要亮点", "## 需要关注", "## 下一步建议"):
            assert heading in report
        assert "在这个月（2024-03-01 至 2024-03-31），你共记录了 12 条事项。" in report

    def test_empty_period_wording(self):
        report = build_fallback_report("week", "2024-03-04", "2024-03-10", 0)

        assert "暂无记录，开始记录你的第一条事项吧！" in report
        assert "即将开始你的记录之旅" in report


class TestReviewReportGenerator:
    """Tests for the completion call and its fallback."""

    def test_uses_completion_text(self):
        fake = FakeAnthropic(text="## 整体总结\n\n本周很充实")
        generator = ReviewReportGenerator(client=fake, model="test-model")

        report = generator.generate([{"date": "2024-03-04", "content": "跑步"}], "week", "2024-03-04", "2024-03-10")

        assert report == "## 整体总结\n\n本周很充实"
        call = fake.messages.calls[0]
        assert call["model"] == "test-model"
        assert call["max_tokens"] == 2000
        assert call["temperature"] == 0.7
        assert "1. 跑步" in call["messages"][0]["content"]

    def test_upstream_error_falls_back(self):
        generator = ReviewReportGenerator(client=FakeAnthropic(error=RuntimeError("503")))

        report = generator.generate([], "week", "2024-03-04", "2024-03-10")

        assert report == build_fallback_report("week", "2024-03-04", "2024-03-10", 0)

    def test_empty_completion_falls_back(self):
        generator = ReviewReportGenerator(client=FakeAnthropic(text="   "))

        report = generator.generate([{"date": "2024-03-04", "content": "x"}], "week", "2024-03-04", "2024-03-10")

        assert report == build_fallback_report("week", "2024-03-04", "2024-03-10", 1)

    def test_no_api_key_falls_back(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        generator = ReviewReportGenerator()

        assert generator.client is None
        assert "## 整体总结" in generator.generate([], "month", "2024-03-01", "2024-03-31")


class TestGenerateReview:
    """Tests for caching of signed-in reports."""

    def test_second_call_is_cached(self, db, make_user):
        user = make_user("alice")
        fake = FakeAnthropic(text="第一次")
        generator = ReviewReportGenerator(client=fake)

        first = generate_review(db, generator, "week", "2024-03-04", "2024-03-10", user_id=user.id)
        fake.messages.text = "第二次"
        second = generate_review(db, generator, "week", "2024-03-04", "2024-03-10", user_id=user.id)

        assert first == ("第一次", False)
        assert second == ("第一次", True)
        assert len(fake.messages.calls) == 1

    def test_failed_cache_write_still_returns_report(self, db, make_user, monkeypatch):
        """A cache insert that fails is logged; the caller still gets the fresh report."""
        user = make_user("alice")
        generator = ReviewReportGenerator(client=FakeAnthropic(text="fresh"))

        def failing_commit():
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", failing_commit)

        result = generate_review(db, generator, "week", "2024-03-04", "2024-03-10", user_id=user.id)

        assert result == ("fresh", False)
        monkeypatch.undo()
        assert db.query(ReviewReport).count() == 0

    def test_guest_reports_not_cached(self, db):
        generator = ReviewReportGenerator(client=FakeAnthropic(text="guest"))

        result = generate_review(db, generator, "week", "2024-03-04", "2024-03-10", guest_items=[])

        assert result == ("guest", False)
        assert db.query(ReviewReport).count() == 0


class TestGenerateRoute:
    """Tests for POST /api/review/generate."""

    def test_validates_period(self, client):
        response = client.post("/api/review/generate", json={"type": "year", "startDate": "2024-01-01", "endDate": "2024-12-31", "isGuest": True})

        assert response.status_code == 400
        assert response.json() == {"error": "Type must be 'week' or 'month'"}

    def test_missing_fields(self, client):
        response = client.post("/api/review/generate", json={"type": "week"})

        assert response.status_code == 400
        assert response.json() == {"error": "Type, startDate, and endDate are required"}

    def test_guest_report(self, client):
        response = client.post("/api/review/generate", json={
            "type": "week", "startDate": "2024-03-04", "endDate": "2024-03-10",
            "items": [{"date": "2024-03-04", "content": "x"}], "isGuest": True,
        })

        assert response.status_code == 200
        assert response.json()["cached"] is False
        assert "你共记录了 1 条事项" in response.json()["content"]

    def test_signed_in_requires_token(self, client):
        response = client.post("/api/review/generate", json={"type": "week", "startDate": "2024-03-04", "endDate": "2024-03-10"})

        assert response.status_code == 401

    def test_signed_in_report_cached(self, client, make_user, auth_header):
        user = make_user("alice")
        fake = FakeAnthropic(text="## 整体总结\n\nAI")
        app.dependency_overrides[get_report_generator] = lambda: ReviewReportGenerator(client=fake)
        body = {"type": "month", "startDate": "2024-03-01", "endDate": "2024-03-31"}

        first = client.post("/api/review/generate", json=body, headers=auth_header(user)).json()
        second = client.post("/api/review/generate", json=body, headers=auth_header(user)).json()

        assert first == {"content": "## 整体总结\n\nAI", "cached": False}
        assert second == {"content": "## 整体总结\n\nAI", "cached": True}
