import logging

import pytest
from sqlalchemy.exc import OperationalError

from coin_exchange import models, reset, reset_data
from coin_exchange.reset import RESET_ORDER, reset_operational_data

from conftest import auth_header


WIPED = (
    models.TransactionDetail,
    models.Transaction,
    models.RouteAssignment,
    models.UserStock,
    models.WarehouseStock,
    models.Vehicle,
)


def counts(db):
    db.expire_all()
    return {m.__name__: db.query(m).count() for m in WIPED + (models.User, models.Store)}


@pytest.fixture()
def vehicle_delete_fails(monkeypatch):
    original = reset._delete_all

    def failing(db, model):
        if model is models.Vehicle:
            raise OperationalError("DELETE FROM vehicles", {}, Exception("disk I/O error"))
        return original(db, model)

    monkeypatch.setattr(reset, "_delete_all", failing)


def test_reset_order_deletes_children_first():
    names = [m.__name__ for m in RESET_ORDER]
    assert names == [
        "TransactionDetail",
        "Transaction",
        "RouteAssignment",
        "UserStock",
        "WarehouseStock",
        "Vehicle",
    ]


def test_reset_wipes_operational_tables_and_keeps_master_data(db, populated):
    before = counts(db)
    deleted = reset_operational_data(db)

    after = counts(db)
    for model in WIPED:
        assert after[model.__name__] == 0
    assert after["User"] == before["User"] == 3
    assert after["Store"] == before["Store"] == 1
    assert deleted["transaction_details"] == 2
    assert deleted["warehouse_stocks"] == 2


def test_reset_logs_each_step(db, populated, caplog):
    with caplog.at_level(logging.INFO, logger="coin_exchange.reset"):
        reset_operational_data(db)
    text = caplog.text
    for model in RESET_ORDER:
        assert f"Deleting {model.__name__}..." in text
    assert "Preserved tables: User, Store" in text


def test_reset_rolls_back_everything_on_failure(db, populated, vehicle_delete_fails):
    before = counts(db)
    with pytest.raises(OperationalError):
        reset_operational_data(db)
    assert counts(db) == before


def test_reset_endpoint(client, db, populated, superadmin):
    resp = client.post("/api/system/reset-data", headers=auth_header(superadmin))
    assert resp.status_code == 200
    assert resp.json()["message"] == "System data reset successfully."
    after = counts(db)
    assert after["Vehicle"] == 0
    assert after["Transaction"] == 0
    assert after["User"] == 3
    assert after["Store"] == 1


def test_reset_endpoint_failure_is_atomic(client, db, populated, superadmin, vehicle_delete_fails):
    before = counts(db)
    resp = client.post("/api/system/reset-data", headers=auth_header(superadmin))
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to reset system data."
    assert "disk I/O error" in body["details"]
    assert counts(db) == before


def test_reset_endpoint_requires_superadmin(client, populated, admin):
    resp = client.post("/api/system/reset-data", headers=auth_header(admin))
    assert resp.status_code == 403


def test_reset_endpoint_requires_token(client):
    resp = client.post("/api/system/reset-data")
    assert resp.status_code == 401


def test_reset_script_exit_codes(monkeypatch, session_factory, db, populated):
    monkeypatch.setattr(reset_data, "SessionLocal", session_factory)
    assert reset_data.main() == 0
    assert counts(db)["Vehicle"] == 0


def test_reset_script_failure_leaves_tables_untouched(monkeypatch, session_factory, db, populated, vehicle_delete_fails):
    monkeypatch.setattr(reset_data, "SessionLocal", session_factory)
    before = counts(db)
    assert reset_data.main() == 1
    assert counts(db) == before
