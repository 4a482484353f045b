"""
Data Service

The one entry point a UI talks to. The backing store (local for guests,
remote for signed-in users) is picked once when the service is built, so
the operations below never branch on mode themselves.

Every mutation publishes on the data-change channel; subscribers re-fetch.
"""

import logging
from typing import Callable, Dict, List, Optional

from daily_review.categories import CATEGORY_ORDER, compose_content
from daily_review.client.api import ApiClient
from daily_review.client.errors import DataServiceError, NotAuthenticated, ValidationError
from daily_review.client.events import DataChangeChannel
from daily_review.client.local_store import LocalStore
from daily_review.client.models import Item, MigrationResult, MultiAddResult, Stats, UserSession
from daily_review.client.remote_store import RemoteStore
from daily_review.client.storage import GUEST_MODE_KEY, KeyValueStorage
from daily_review.services.review_service import current_period
from daily_review.services.validators import PERIOD_TYPES, validate_item

logger = logging.getLogger(__name__)


class DataService:
    def __init__(
        self,
        store,
        local: LocalStore,
        remote: Optional[RemoteStore] = None,
        channel: Optional[DataChangeChannel] = None,
        remote_configured: bool = True,
    ):
        self.store = store
        self.local = local
        self.remote = remote
        self.channel = channel or DataChangeChannel()
        self.remote_configured = remote_configured

    @classmethod
    def create(
        cls,
        storage: KeyValueStorage,
        api_base_url: Optional[str] = None,
        session: Optional[UserSession] = None,
        http=None,
        channel: Optional[DataChangeChannel] = None,
    ) -> "DataService":
        """
        Build a service for the current mode.

        Guest mode (flag set, or no backend configured) uses the local
        store. Otherwise the remote store is used with the session's token;
        without a session remote calls fail with ``NotAuthenticated``.
        A signed-in session with the guest flag still set keeps the local
        store but gets a remote store for migration.
        """
        guest_api = ApiClient(api_base_url, http=http) if api_base_url else None
        local = LocalStore(storage, api=guest_api)

        remote = None
        if api_base_url:
            token = session.access_token if session and not session.is_guest else None
            remote = RemoteStore(ApiClient(api_base_url, access_token=token, http=http))

        guest = storage.read(GUEST_MODE_KEY) == "true" or not api_base_url
        store = local if guest else remote
        return cls(store, local, remote=remote, channel=channel, remote_configured=bool(api_base_url))

    def is_guest_mode(self) -> bool:
        return self.local.storage.read(GUEST_MODE_KEY) == "true" or not self.remote_configured

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self.channel.subscribe(callback)

    def _notify(self) -> None:
        self.channel.publish()

    @staticmethod
    def _clean(content: str, date: str) -> str:
        try:
            validate_item(content, date)
        except ValueError as e:
            raise ValidationError(str(e))
        return content.strip()

    # --- reads ---

    def get_items(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[Item]:
        """Items in the inclusive range. Order is not guaranteed."""
        return self.store.list(start_date, end_date)

    def get_stats(self) -> Stats:
        return self.store.stats()

    # --- writes ---

    def add_item(self, content: str, date: str) -> Item:
        item = self.store.add(self._clean(content, date), date)
        self._notify()
        return item

    def add_categorized_items(self, contents: Dict[str, str], date: str) -> MultiAddResult:
        """
        Add one item per non-empty category text.

        Inserts are independent: a failure is recorded against its category
        and the others are kept, so the caller can retry just the failures.
        """
        entries = [
            (category, text.strip())
            for category, text in contents.items()
            if text and text.strip()
        ]
        if not entries:
            raise ValidationError("请至少填写一项内容")
        for category, _ in entries:
            if category not in CATEGORY_ORDER:
                raise ValidationError(f"Unknown category: {category}")

        result = MultiAddResult()
        for category, text in entries:
            try:
                item = self.store.add(self._clean(compose_content(category, text), date), date)
            except DataServiceError as e:
                logger.warning(f"Adding {category} item failed: {e}")
                result.failed.append((category, e))
            else:
                result.succeeded.append((category, item))

        if result.succeeded:
            self._notify()
        return result

    def update_item(self, item_id: str, content: str, date: str) -> Item:
        item = self.store.update(item_id, self._clean(content, date), date)
        self._notify()
        return item

    def delete_item(self, item_id: str) -> None:
        self.store.delete(item_id)
        self._notify()

    # --- reports ---

    def generate_report(self, period_type: str, start_date: str, end_date: str) -> str:
        if period_type not in PERIOD_TYPES:
            raise ValidationError("Type must be 'week' or 'month'")
        if not start_date or not end_date:
            raise ValidationError("Type, startDate, and endDate are required")
        return self.store.generate_report(period_type, start_date, end_date)

    def generate_current_report(self, period_type: str) -> str:
        """Report for the current week or month."""
        if period_type not in PERIOD_TYPES:
            raise ValidationError("Type must be 'week' or 'month'")
        return self.generate_report(period_type, *current_period(period_type))

    # --- migration ---

    def migrate_guest_data(self) -> MigrationResult:
        """
        Upload guest items to the signed-in account.

        Local data is cleared only when the server stored every item; on a
        partial result it stays so the migration can be retried.
        """
        items = self.local.all_items()
        if not items:
            return MigrationResult(success=True, count=0, total=0)

        if self.remote is None:
            raise NotAuthenticated("Not authenticated")

        migrated, total = self.remote.migrate(items)
        if migrated < total:
            logger.warning(f"Partial migration: {migrated}/{total} items, keeping local data")
            return MigrationResult(success=False, count=migrated, total=total)

        self.local.clear()
        self._notify()
        return MigrationResult(success=True, count=migrated, total=total)
