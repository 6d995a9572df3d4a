"""
Client-side auth/session state for the field app and admin dashboard.

``SessionStore`` tracks who is logged in (user + bearer token) separately from
the day's operating context (vehicle + position + date). Logging out keeps the
operating context so a same-day re-login does not have to pick a vehicle
again; ``clear_session`` drops both.

State is written through a small persistence port after every mutation and
restored when a store is built over the same port.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Callable, Optional, Protocol
import json
import logging

logger = logging.getLogger(__name__)

STORAGE_KEY = "auth-storage"


class PersistenceStorage(Protocol):
    """Key-value port holding serialized snapshots."""

    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, value: str) -> None:
        ...


@dataclass
class MemoryStorage:
    items: dict = field(default_factory=dict)

    def read(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def write(self, key: str, value: str) -> None:
        self.items[key] = value


@dataclass
class FileStorage:
    """One ``<key>.json`` file per record inside ``directory``."""

    directory: Path

    def __post_init__(self):
        self.directory = Path(self.directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")


@dataclass
class SessionUser:
    nik: str
    full_name: str
    role: str
    position: str


class SessionStore:
    def __init__(
        self,
        storage: PersistenceStorage | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo = timezone.utc,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.tz = tz

        self.user: Optional[SessionUser] = None
        self.token: Optional[str] = None
        self.vehicle: Optional[str] = None
        self.selected_position: Optional[str] = None
        self.session_date: Optional[str] = None  # YYYY-MM-DD
        self.is_authenticated = False
        self._restore()

    def today(self) -> str:
        """Current calendar day as ``YYYY-MM-DD`` in the store's timezone."""
        return self._clock().astimezone(self.tz).date().isoformat()

    def login(self, nik: str, full_name: str, role: str, position: str, token: str) -> None:
        # The token is not checked here; the API reports 401 when it stops working
        self.user = SessionUser(nik=nik, full_name=full_name, role=role.upper(), position=position.upper())
        self.token = token
        self.is_authenticated = True
        self._persist()

    def set_session_details(self, vehicle: str, position: str) -> None:
        self.vehicle = vehicle
        self.selected_position = position
        self.session_date = self.today()
        self._persist()

    def logout(self) -> None:
        """Forget identity only; vehicle/position/date survive for a same-day re-login."""
        self.user = None
        self.token = None
        self.is_authenticated = False
        self._persist()

    def clear_session(self) -> None:
        """End-of-day reset: forget identity and the operating context."""
        self.user = None
        self.token = None
        self.vehicle = None
        self.selected_position = None
        self.session_date = None
        self.is_authenticated = False
        self._persist()

    def has_valid_session(self) -> bool:
        return bool(self.vehicle and self.selected_position and self.session_date == self.today())

    def get_token(self) -> Optional[str]:
        return self.token

    def snapshot(self) -> dict:
        return {
            "user": vars(self.user).copy() if self.user else None,
            "token": self.token,
            "vehicle": self.vehicle,
            "selectedPosition": self.selected_position,
            "sessionDate": self.session_date,
            "isAuthenticated": self.is_authenticated,
        }

    def _persist(self) -> None:
        self.storage.write(STORAGE_KEY, json.dumps({"state": self.snapshot(), "version": 0}))

    def _restore(self) -> None:
        raw = self.storage.read(STORAGE_KEY)
        if not raw:
            return
        try:
            state = json.loads(raw).get("state") or {}
        except (ValueError, AttributeError):
            logger.warning("Ignoring unreadable %s record", STORAGE_KEY)
            return
        user = state.get("user")
        self.user = SessionUser(**user) if user else None
        self.token = state.get("token")
        self.vehicle = state.get("vehicle")
        self.selected_position = state.get("selectedPosition")
        self.session_date = state.get("sessionDate")
        self.is_authenticated = bool(state.get("isAuthenticated"))
