import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coin_exchange import models
from coin_exchange.database import Base
from coin_exchange.deps import get_db, get_storage
from coin_exchange.main import app
from coin_exchange.routers.users import create_access_token, pwd_context
from coin_exchange.storage import InMemoryStorage


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def storage():
    return InMemoryStorage()


@pytest.fixture()
def client(session_factory, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, nik, role="FIELD", position="CASHIER", password="rahasia123", full_name=None):
    user = models.User(
        nik=nik,
        full_name=full_name or f"User {nik}",
        password=pwd_context.hash(password),
        role=role,
        position=position,
    )
    db.add(user)
    db.commit()
    return user


def auth_header(user) -> dict:
    token = create_access_token({"sub": user.nik, "role": user.role, "position": user.position})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def superadmin(db):
    return make_user(db, "99999", role="SUPER_ADMIN", position="ADMIN", full_name="Super Administrator")


@pytest.fixture()
def admin(db):
    return make_user(db, "10001", role="ADMIN", position="ADMIN")


@pytest.fixture()
def cashier(db):
    return make_user(db, "20001", role="FIELD", position="CASHIER")


@pytest.fixture()
def driver(db):
    return make_user(db, "20002", role="FIELD", position="DRIVER")


@pytest.fixture()
def populated(db, superadmin, cashier, driver):
    """One row in every table touched by the reset, plus master data."""
    store = models.Store(code="TRBC", name="Indomaret Tembelang", branch="Jombang 1 (G148)")
    vehicle = models.Vehicle(nopol="S 1234 AB", brand="Suzuki", type="APV")
    db.add_all([store, vehicle])
    db.commit()

    assignment = models.RouteAssignment(
        date="2026-10-19",
        vehicle_id=vehicle.id,
        cashier_id=cashier.nik,
        driver_id=driver.nik,
        initial_stock={"500": 100},
        current_stock={"500": 100},
        status="Active",
        store_codes=["TRBC"],
    )
    tx = models.Transaction(
        user_nik=cashier.nik,
        store_code=store.code,
        vehicle_nopol=vehicle.nopol,
        total_coin=5000,
        total_big_money=5000,
        source="field",
    )
    tx.details = [
        models.TransactionDetail(denom=500, qty=10, type="COIN"),
        models.TransactionDetail(denom=5000, qty=1, type="BIG_MONEY"),
    ]
    db.add_all([
        assignment,
        tx,
        models.UserStock(user_nik=cashier.nik, balance_coin=45000, balance_big_money=5000),
        models.WarehouseStock(denom=500, qty=900),
        models.WarehouseStock(denom=5000, qty=10),
    ])
    db.commit()
    return {"store": store, "vehicle": vehicle, "assignment": assignment, "transaction": tx}
