import logging
from typing import Any, Dict, Optional

import requests

from daily_review.client.errors import (
    DataServiceError,
    Forbidden,
    NotAuthenticated,
    NotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class ApiClient:
    """Thin JSON client for the daily review HTTP API.

    ``http`` is anything with a requests-style ``request`` method; it
    defaults to a ``requests.Session``.
    """

    def __init__(self, base_url: str, access_token: Optional[str] = None, http=None, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.http = http or requests.Session()
        self.timeout = timeout

    def _headers(self, authenticated: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if authenticated:
            if not self.access_token:
                raise NotAuthenticated("Not authenticated")
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded body, mapping error statuses."""
        headers = self._headers(authenticated)
        try:
            response = self.http.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise DataServiceError(f"Network error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if 200 <= response.status_code < 300:
            return body

        if not isinstance(body, dict):
            body = {}
        message = body.get("error") or f"Request failed with status {response.status_code}"
        if response.status_code == 401:
            raise NotAuthenticated(message, body)
        if response.status_code == 403:
            raise Forbidden(message, body)
        if response.status_code == 404:
            raise NotFound(message, body)
        if response.status_code == 400:
            raise ValidationError(message, body)
        logger.error(f"{method} {path} returned {response.status_code}: {message}")
        raise DataServiceError(message, body)
