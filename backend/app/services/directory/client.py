from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase

from app.core.config import settings

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Config
# -----------------------------------------------------------------------------
DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

USERS_PATH = "/users/{id}"
ADD_USER_PATH = "/users/add"


class BearerAuth(AuthBase):
    def __init__(self, token: str) -> None:
        self.token = token

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r.headers["Authorization"] = f"Bearer {self.token}"
        return r


def _new_session() -> requests.Session:
    # No retries: a failed call is reported once and left alone
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=0)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers.update(DEFAULT_HEADERS)
    return s


class DirectoryClient:
    """
    Thin HTTP client for the remote user directory.

    Returns raw `requests.Response` objects; callers decide what a status
    code means. Transport errors propagate as `requests.RequestException`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Tuple[float, float] = (5, 20),
        auth: Optional[AuthBase] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth = auth
        self.session = session or _new_session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def get_user(self, external_id: str) -> requests.Response:
        url = self._url(USERS_PATH.format(id=external_id))
        logger.debug("[directory] GET %s", url)
        return self.session.get(url, headers=DEFAULT_HEADERS, auth=self.auth, timeout=self.timeout)

    def add_user(self, payload: Dict[str, Any]) -> requests.Response:
        url = self._url(ADD_USER_PATH)
        logger.debug("[directory] POST %s", url)
        return self.session.post(url, json=payload, headers=DEFAULT_HEADERS, auth=self.auth, timeout=self.timeout)

    def close(self) -> None:
        self.session.close()


def client_from_settings() -> DirectoryClient:
    token = settings.DIRECTORY_API_TOKEN
    return DirectoryClient(
        settings.DIRECTORY_BASE_URL,
        timeout=settings.directory_timeout,
        auth=BearerAuth(token) if token else None,
    )
