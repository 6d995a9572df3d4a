# coin_exchange/models.py
import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Float, CheckConstraint
from sqlalchemy.orm import relationship

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    nik        = Column(String(32), primary_key=True, index=True)
    password   = Column(String(255), nullable=False)  # bcrypt hash; legacy rows may be plain text
    full_name  = Column(String(255), nullable=False)
    role       = Column(String(20), nullable=False, default="FIELD")
    position   = Column(String(20), nullable=False, default="CASHIER")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    __table_args__ = (
        CheckConstraint("role IN ('SUPER_ADMIN','ADMIN','FIELD')", name="ck_users_role"),
        CheckConstraint("position IN ('DRIVER','CASHIER','ADMIN')", name="ck_users_position"),
    )


class Store(Base):
    __tablename__ = "stores"
    code     = Column(String(32), primary_key=True, index=True)
    name     = Column(String(255), nullable=False)
    address  = Column(String(512))
    area_spv = Column(String(255))
    area_mgr = Column(String(255))
    branch   = Column(String(255))


class Vehicle(Base):
    __tablename__ = "vehicles"
    id          = Column(String(36), primary_key=True, default=_uuid)
    nopol       = Column(String(32), unique=True, index=True, nullable=False)  # plat nomor
    brand       = Column(String(100))
    type        = Column(String(100))
    description = Column(String(512))


class RouteAssignment(Base):
    __tablename__ = "route_assignments"
    id                 = Column(String(36), primary_key=True, default=_uuid)
    date               = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    vehicle_id         = Column(String(36), ForeignKey("vehicles.id"), nullable=False)
    cashier_id         = Column(String(32), ForeignKey("users.nik"), nullable=False)
    driver_id          = Column(String(32), ForeignKey("users.nik"), nullable=False)
    initial_stock      = Column(JSON, nullable=False, default=dict)  # {denom: qty}
    current_stock      = Column(JSON, nullable=False, default=dict)
    status             = Column(String(20), nullable=False, default="Ready")  # Ready / Active / Completed
    store_codes        = Column(JSON, nullable=False, default=list)
    current_stop_index = Column(Integer, nullable=False, default=0)
    created_at         = Column(DateTime, nullable=False, default=datetime.utcnow)

    vehicle = relationship("Vehicle")
    cashier = relationship("User", foreign_keys=[cashier_id])
    driver  = relationship("User", foreign_keys=[driver_id])


class Transaction(Base):
    __tablename__ = "transactions"
    id                  = Column(String(36), primary_key=True, default=_uuid)
    user_nik            = Column(String(32), ForeignKey("users.nik"), nullable=False, index=True)
    store_code          = Column(String(32), ForeignKey("stores.code"), nullable=False)
    vehicle_nopol       = Column(String(32), ForeignKey("vehicles.nopol"), nullable=True)
    total_coin          = Column(Float, nullable=False, default=0)
    total_big_money     = Column(Float, nullable=False, default=0)
    store_team_name     = Column(String(255))
    store_team_wa       = Column(String(32))
    store_team_position = Column(String(100))
    source              = Column(String(20), nullable=False, default="field")  # field / walk_in
    status              = Column(String(20), nullable=False, default="completed")
    receipt_url         = Column(String(1024))
    created_at          = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    store   = relationship("Store")
    user    = relationship("User")
    details = relationship("TransactionDetail", back_populates="transaction")


class TransactionDetail(Base):
    __tablename__ = "transaction_details"
    id             = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False, index=True)
    denom          = Column(Integer, nullable=False)
    qty            = Column(Integer, nullable=False)
    type           = Column(String(20), nullable=False)  # COIN / BIG_MONEY

    transaction = relationship("Transaction", back_populates="details")


class UserStock(Base):
    __tablename__ = "user_stocks"
    id                = Column(Integer, primary_key=True, autoincrement=True)
    user_nik          = Column(String(32), ForeignKey("users.nik"), unique=True, nullable=False)
    balance_coin      = Column(Float, nullable=False, default=0)
    balance_big_money = Column(Float, nullable=False, default=0)


class WarehouseStock(Base):
    __tablename__ = "warehouse_stocks"
    id    = Column(Integer, primary_key=True, autoincrement=True)
    denom = Column(Integer, unique=True, nullable=False, index=True)
    qty   = Column(Integer, nullable=False, default=0)
