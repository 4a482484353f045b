"""
Tests for the client data layer: local store, change notifications,
session handling, multi-category add and guest migration.
"""

import json

import pytest

from daily_review.client import (
    DataChangeChannel,
    DataService,
    DataServiceError,
    JsonFileStorage,
    LocalStore,
    LoginError,
    MemoryStorage,
    NotFound,
    SessionManager,
    ValidationError,
)
from daily_review.client.local_store import MS_PER_DAY, total_days_since
from daily_review.client.storage import GUEST_MODE_KEY, ITEMS_KEY, SESSION_KEY, USER_KEY

BASE_URL = "http://testserver"
T0 = 1709251200.0  # 2024-03-01T00:00:00Z


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def local(storage, clock):
    return LocalStore(storage, clock=clock)


class TestTotalDays:
    """Days on record count from the first creation time."""

    def test_no_records(self):
        assert total_days_since(None, 123) == 0

    def test_partial_day_rounds_up(self):
        assert total_days_since(0, int(1.5 * MS_PER_DAY)) == 2

    def test_same_instant(self):
        assert total_days_since(1000, 1000) == 0


class TestLocalStore:
    """Tests for guest-mode persistence."""

    def test_add_records_first_creation_time(self, local, storage):
        local.add("早起", "2024-02-01")

        assert json.loads(storage.read(USER_KEY)) == {"firstRecordDate": int(T0 * 1000)}

    def test_first_record_date_not_moved(self, local, clock, storage):
        local.add("a", "2024-03-01")
        clock.now += 3600
        local.add("b", "2023-01-01")

        assert json.loads(storage.read(USER_KEY))["firstRecordDate"] == int(T0 * 1000)

    def test_ids_unique_within_same_millisecond(self, local):
        first = local.add("a", "2024-03-01")
        second = local.add("b", "2024-03-01")

        assert first.id != second.id
        assert int(second.id) == int(first.id) + 1

    def test_list_inclusive_range(self, local):
        for day in ("2024-02-28", "2024-03-01", "2024-03-07", "2024-03-08"):
            local.add(day, day)

        dates = sorted(item.date for item in local.list("2024-03-01", "2024-03-07"))

        assert dates == ["2024-03-01", "2024-03-07"]

    def test_list_open_bounds(self, local):
        local.add("a", "2024-03-01")
        local.add("b", "2024-03-09")

        assert [i.date for i in local.list(start_date="2024-03-05")] == ["2024-03-09"]
        assert [i.date for i in local.list(end_date="2024-03-05")] == ["2024-03-01"]

    def test_update(self, local):
        item = local.add("old", "2024-03-01")

        local.update(item.id, "new", "2024-03-02")

        stored = local.list()[0]
        assert (stored.content, stored.date, stored.created_at) == ("new", "2024-03-02", item.created_at)

    def test_update_missing(self, local):
        with pytest.raises(NotFound):
            local.update("404", "x", "2024-03-01")

    def test_delete_missing_is_noop(self, local):
        local.add("a", "2024-03-01")

        local.delete("does-not-exist")

        assert len(local.list()) == 1

    def test_stats(self, local, clock):
        local.add("a", "2024-03-01")
        local.add("b", "2024-03-02")
        clock.now += 1.5 * 24 * 3600

        stats = local.stats()

        assert stats.total_items == 2
        assert stats.total_days == 2
        assert stats.first_record_date == int(T0 * 1000)

    def test_report_without_server_uses_fallback(self, local):
        local.add("a", "2024-03-04")

        report = local.generate_report("week", "2024-03-04", "2024-03-10")

        assert "你共记录了 1 条事项" in report

    def test_corrupt_items_raise_data_service_error(self, storage):
        storage.write(ITEMS_KEY, "[{broken")
        service = DataService.create(storage)

        with pytest.raises(DataServiceError):
            service.get_items()

    def test_corrupt_user_data_raises_data_service_error(self, local, storage):
        storage.write(USER_KEY, "not json")

        with pytest.raises(DataServiceError):
            local.stats()

    def test_clear(self, local, storage):
        storage.write(GUEST_MODE_KEY, "true")
        local.add("a", "2024-03-01")

        local.clear()

        assert storage.read(ITEMS_KEY) is None
        assert storage.read(USER_KEY) is None
        assert storage.read(GUEST_MODE_KEY) is None


class TestJsonFileStorage:
    """Tests for the on-disk storage backend."""

    def test_corrupt_file_raises_data_service_error(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(DataServiceError):
            JsonFileStorage(str(path)).read(ITEMS_KEY)

    def test_round_trip_survives_reopen(self, tmp_path):
        path = str(tmp_path / "state" / "storage.json")
        JsonFileStorage(path).write(ITEMS_KEY, "[]")

        reopened = JsonFileStorage(path)

        assert reopened.read(ITEMS_KEY) == "[]"
        reopened.remove(ITEMS_KEY)
        assert JsonFileStorage(path).read(ITEMS_KEY) is None


class TestDataChangeChannel:
    """Tests for payload-less change notifications."""

    def test_unsubscribe(self):
        channel = DataChangeChannel()
        calls = []
        unsubscribe = channel.subscribe(lambda: calls.append(1))

        channel.publish()
        unsubscribe()
        channel.publish()

        assert calls == [1]
        assert len(channel) == 0

    def test_failing_subscriber_does_not_block_others(self):
        channel = DataChangeChannel()
        calls = []

        def broken():
            raise RuntimeError("boom")

        channel.subscribe(broken)
        channel.subscribe(lambda: calls.append(1))

        channel.publish()

        assert calls == [1]


class FlakyStore:
    """Local store that rejects one category."""

    def __init__(self, inner, failing_prefix):
        self.inner = inner
        self.failing_prefix = failing_prefix

    def add(self, content, date):
        if content.startswith(self.failing_prefix):
            raise DataServiceError("write failed")
        return self.inner.add(content, date)

    def __getattr__(self, name):
        return getattr(self.inner, name)


class TestDataServiceGuest:
    """Tests for DataService in guest mode."""

    @pytest.fixture
    def service(self, local):
        return DataService(local, local, remote_configured=False)

    def test_no_backend_means_guest(self, storage):
        service = DataService.create(storage)

        assert service.is_guest_mode() is True
        assert isinstance(service.store, LocalStore)

    def test_mutations_notify(self, service):
        calls = []
        service.subscribe(lambda: calls.append("changed"))

        item = service.add_item("a", "2024-03-01")
        service.update_item(item.id, "b", "2024-03-01")
        service.delete_item(item.id)

        assert calls == ["changed"] * 3

    def test_add_item_validates(self, service):
        with pytest.raises(ValidationError):
            service.add_item("   ", "2024-03-01")
        with pytest.raises(ValidationError):
            service.add_item("x", "2024/03/01")

    def test_add_categorized_items(self, service):
        result = service.add_categorized_items(
            {"basic": "早起", "energy": "", "create": "写作"}, "2024-03-01",
        )

        assert result.ok
        assert [category for category, _ in result.succeeded] == ["basic", "create"]
        assert sorted(item.content for item in service.get_items()) == ["【创造】写作", "【基础】早起"]

    def test_add_categorized_requires_one_text(self, service):
        with pytest.raises(ValidationError):
            service.add_categorized_items({"basic": " ", "energy": ""}, "2024-03-01")

    def test_add_categorized_partial_failure(self, local):
        """A failed category is reported; the other inserts are kept."""
        service = DataService(FlakyStore(local, "【蓄能】"), local, remote_configured=False)
        calls = []
        service.subscribe(lambda: calls.append(1))

        result = service.add_categorized_items({"basic": "早起", "energy": "读书"}, "2024-03-01")

        assert not result.ok
        assert result.failed_categories == ["energy"]
        assert [item.content for item in local.list()] == ["【基础】早起"]
        assert calls == [1]

    def test_generate_report_validates_type(self, service):
        with pytest.raises(ValidationError):
            service.generate_report("year", "2024-01-01", "2024-12-31")

    def test_generate_current_report(self, service):
        report = service.generate_current_report("month")

        assert "## 整体总结" in report
        with pytest.raises(ValidationError):
            service.generate_current_report("day")

    def test_migrate_nothing(self, service):
        result = service.migrate_guest_data()

        assert (result.success, result.count, result.total) == (True, 0, 0)


class TestSessionManager:
    """Tests for login, guest mode and session verification."""

    def test_auto_guest_without_backend(self, storage):
        session = SessionManager(storage).current()

        assert session.is_guest
        assert storage.read(GUEST_MODE_KEY) == "true"

    def test_no_session_with_backend(self, storage, http):
        assert SessionManager(storage, BASE_URL, http=http).current() is None

    def test_needs_invite_code(self, storage, http):
        manager = SessionManager(storage, BASE_URL, http=http)

        with pytest.raises(LoginError) as exc_info:
            manager.login("newbie", "secret123")

        assert exc_info.value.reason == "needs_invite_code"
        assert storage.read(SESSION_KEY) is None

    def test_login_persists_session(self, storage, http, make_user):
        make_user("alice", "secret123")
        storage.write(GUEST_MODE_KEY, "true")
        manager = SessionManager(storage, BASE_URL, http=http)

        result = manager.login("alice", "secret123")

        assert result.is_new_user is False
        assert result.needs_migration is False
        assert storage.read(GUEST_MODE_KEY) is None
        assert manager.current().username == "alice"
        assert manager.verify(manager.current()) is True

    def test_rejected_token_forgotten(self, storage, http):
        storage.write(SESSION_KEY, json.dumps({
            "kind": "authenticated", "access_token": "bogus", "user_id": "x", "username": "x",
        }))
        manager = SessionManager(storage, BASE_URL, http=http)

        assert manager.verify(manager.current()) is False
        assert storage.read(SESSION_KEY) is None


class TestDataServiceRemote:
    """Tests for DataService against the API in-process."""

    def test_remote_crud_and_stats(self, storage, http, make_user):
        make_user("alice", "secret123")
        session = SessionManager(storage, BASE_URL, http=http).login("alice", "secret123").session
        service = DataService.create(storage, BASE_URL, session=session, http=http)

        assert service.is_guest_mode() is False
        item = service.add_item("【基础】早起", "2024-03-01")
        service.update_item(item.id, "【基础】早睡", "2024-03-01")
        items = service.get_items("2024-03-01", "2024-03-01")
        stats = service.get_stats()

        assert [i.content for i in items] == ["【基础】早睡"]
        assert stats.total_items == 1
        assert stats.first_record_date == item.created_at

        service.delete_item(item.id)
        assert service.get_items() == []

    def test_remote_without_session(self, storage, http):
        service = DataService.create(storage, BASE_URL, http=http)

        with pytest.raises(DataServiceError):
            service.get_items()

    def test_guest_report_from_server(self, storage, http):
        storage.write(GUEST_MODE_KEY, "true")
        service = DataService.create(storage, BASE_URL, http=http)
        service.add_item("a", "2024-03-04")

        report = service.generate_report("week", "2024-03-04", "2024-03-10")

        assert "你共记录了 1 条事项" in report

    def test_guest_to_account_migration(self, storage, http, make_invite):
        make_invite("WELCOME1")
        manager = SessionManager(storage, BASE_URL, http=http)
        manager.enter_guest_mode()
        guest = DataService.create(storage, BASE_URL, http=http)
        guest.add_item("【基础】早起", "2024-03-01")
        guest.add_item("【创造】写作", "2024-03-02")

        result = manager.login("newbie", "secret123", "welcome1")
        assert result.is_new_user is True
        assert result.needs_migration is True

        service = DataService.create(storage, BASE_URL, session=result.session, http=http)
        migration = service.migrate_guest_data()

        assert (migration.success, migration.count, migration.total) == (True, 2, 2)
        assert storage.read(ITEMS_KEY) is None
        assert sorted(i.content for i in service.get_items()) == ["【创造】写作", "【基础】早起"]

    def test_partial_migration_keeps_local_data(self, local, storage):
        class HalfRemote:
            def migrate(self, items):
                return 1, len(items)

        local.add("a", "2024-03-01")
        local.add("b", "2024-03-02")
        service = DataService(HalfRemote(), local, remote=HalfRemote())

        result = service.migrate_guest_data()

        assert (result.success, result.count, result.total) == (False, 1, 2)
        assert len(local.list()) == 2
