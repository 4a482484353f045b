from daily_review.client.data_service import DataService
from daily_review.client.errors import (
    DataServiceError,
    ValidationError,
    NotAuthenticated,
    Forbidden,
    NotFound,
    LoginError,
)
from daily_review.client.events import DataChangeChannel
from daily_review.client.local_store import LocalStore
from daily_review.client.models import Item, Stats, MigrationResult, MultiAddResult, UserSession
from daily_review.client.remote_store import RemoteStore
from daily_review.client.session import SessionManager, LoginResult
from daily_review.client.storage import KeyValueStorage, MemoryStorage, JsonFileStorage

__all__ = [
    'DataService',
    'DataServiceError',
    'ValidationError',
    'NotAuthenticated',
    'Forbidden',
    'NotFound',
    'LoginError',
    'DataChangeChannel',
    'LocalStore',
    'RemoteStore',
    'Item',
    'Stats',
    'MigrationResult',
    'MultiAddResult',
    'UserSession',
    'SessionManager',
    'LoginResult',
    'KeyValueStorage',
    'MemoryStorage',
    'JsonFileStorage',
]
