import json
from datetime import datetime, timedelta, timezone

import pytest

from coin_exchange.client.session import STORAGE_KEY, FileStorage, MemoryStorage, SessionStore


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc))


@pytest.fixture()
def store(clock):
    return SessionStore(MemoryStorage(), clock=clock)


def test_login_normalizes_role_and_position(store):
    store.login("20001", "Siti", "field", "cashier", "tok-1")
    assert store.user.role == "FIELD"
    assert store.user.position == "CASHIER"
    assert store.is_authenticated
    assert store.get_token() == "tok-1"


def test_session_valid_only_for_today(store, clock):
    assert not store.has_valid_session()
    store.set_session_details("S 1234 AB", "DRIVER")
    assert store.session_date == "2026-10-19"
    assert store.has_valid_session()

    clock.now += timedelta(days=1)
    assert not store.has_valid_session()


def test_session_needs_vehicle_and_position(store):
    store.set_session_details("", "DRIVER")
    assert not store.has_valid_session()


def test_logout_keeps_session_context(store):
    store.login("20001", "Siti", "FIELD", "CASHIER", "tok-1")
    store.set_session_details("S 1234 AB", "CASHIER")
    store.logout()

    assert store.user is None
    assert store.get_token() is None
    assert not store.is_authenticated
    assert store.has_valid_session()


def test_clear_session_drops_everything(store):
    store.login("20001", "Siti", "FIELD", "CASHIER", "tok-1")
    store.set_session_details("S 1234 AB", "CASHIER")
    store.clear_session()

    assert store.get_token() is None
    assert store.vehicle is None
    assert not store.has_valid_session()


def test_day_boundary_is_utc_by_default(clock):
    # 23:30 in Jakarta is still the previous day in UTC
    clock.now = datetime(2026, 10, 19, 16, 30, tzinfo=timezone.utc)
    utc_store = SessionStore(MemoryStorage(), clock=clock)
    jakarta_store = SessionStore(MemoryStorage(), clock=clock, tz=timezone(timedelta(hours=7)))
    assert utc_store.today() == "2026-10-19"
    assert jakarta_store.today() == "2026-10-19"

    clock.now = datetime(2026, 10, 19, 17, 30, tzinfo=timezone.utc)
    assert utc_store.today() == "2026-10-19"
    assert jakarta_store.today() == "2026-10-20"


def test_state_survives_restart(clock):
    storage = MemoryStorage()
    first = SessionStore(storage, clock=clock)
    first.login("20001", "Siti", "FIELD", "CASHIER", "tok-1")
    first.set_session_details("S 1234 AB", "CASHIER")

    record = json.loads(storage.read(STORAGE_KEY))
    assert record["state"]["sessionDate"] == "2026-10-19"
    assert record["state"]["isAuthenticated"] is True

    second = SessionStore(storage, clock=clock)
    assert second.get_token() == "tok-1"
    assert second.user.nik == "20001"
    assert second.has_valid_session()


def test_file_storage_round_trip(tmp_path, clock):
    storage = FileStorage(tmp_path / "state")
    SessionStore(storage, clock=clock).login("10001", "Admin", "ADMIN", "ADMIN", "tok-2")

    assert (tmp_path / "state" / "auth-storage.json").exists()
    assert SessionStore(FileStorage(tmp_path / "state"), clock=clock).get_token() == "tok-2"


def test_corrupt_record_is_ignored(clock):
    storage = MemoryStorage({STORAGE_KEY: "{not json"})
    store = SessionStore(storage, clock=clock)
    assert store.get_token() is None
    assert not store.is_authenticated
