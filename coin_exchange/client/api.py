"""
HTTP client for the Coin Exchange API.

Adds the bearer token from the session store to every call and turns a 401
into a logout plus a redirect to the matching login page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
import logging

import requests

from ..settings import API_URL, API_ORIGIN
from .session import SessionStore

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "API request failed"
ADMIN_LOGIN = "/admin/login"
APP_LOGIN = "/app/login"


class ApiError(Exception):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Unauthorized(ApiError):
    """401 from the API; the session has already been logged out."""


@dataclass
class Location:
    """Where the user currently is; ``assign`` navigates somewhere else."""

    pathname: str = "/"
    history: list = field(default_factory=list)

    def assign(self, url: str) -> None:
        self.history.append(url)
        self.pathname = url


def _resolve_base_url(base_url: str) -> str:
    if base_url.startswith("/"):
        return API_ORIGIN.rstrip("/") + base_url
    return base_url


class ApiClient:
    def __init__(
        self,
        session_store: SessionStore,
        base_url: str = API_URL,
        location: Location | None = None,
        http: requests.Session | None = None,
    ):
        self.session_store = session_store
        self.base_url = _resolve_base_url(base_url).rstrip("/")
        self.location = location or Location()
        self.http = http or requests.Session()

    def request(self, endpoint: str, method: str = "GET", headers: Optional[dict] = None, **kwargs) -> Any:
        token = self.session_store.get_token()
        merged = {"Content-Type": "application/json"}
        if token:
            merged["Authorization"] = f"Bearer {token}"
        merged.update(headers or {})

        response = self.http.request(method, f"{self.base_url}{endpoint}", headers=merged, **kwargs)

        if response.status_code == 401:
            current = self.location.pathname or ""
            if "/login" not in current:
                logger.info("Session expired on %s, logging out", current)
                self.session_store.logout()
                self.location.assign(ADMIN_LOGIN if current.startswith("/admin") else APP_LOGIN)

        if not response.ok:
            message = _error_message(response)
            if response.status_code == 401:
                raise Unauthorized(message, response.status_code)
            raise ApiError(message, response.status_code)

        return response.json()

    def get(self, endpoint: str, **kwargs) -> Any:
        return self.request(endpoint, "GET", **kwargs)

    def post(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request(endpoint, "POST", json=json, **kwargs)

    def put(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request(endpoint, "PUT", json=json, **kwargs)

    def delete(self, endpoint: str, **kwargs) -> Any:
        return self.request(endpoint, "DELETE", **kwargs)


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return FALLBACK_MESSAGE
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return FALLBACK_MESSAGE
