# coin_exchange/ledger.py
# Stock bookkeeping shared by the stock, assignment and transaction routers.
# Helpers only add/flush; the caller owns the commit.
import logging

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)

DEFAULT_DENOMS = [100, 200, 500, 1000, 2000, 5000, 10000, 20000, 50000, 100000]
COIN_MAX_DENOM = 1000  # 100, 200, 500, 1000 are coins; anything larger is big money


def is_coin(denom: int) -> bool:
    return denom <= COIN_MAX_DENOM


def warehouse_map(db: Session) -> dict[int, int]:
    rows = db.query(models.WarehouseStock).order_by(models.WarehouseStock.denom.asc()).all()
    out = {r.denom: r.qty for r in rows}
    for d in DEFAULT_DENOMS:
        out.setdefault(d, 0)
    return dict(sorted(out.items()))


def set_warehouse(db: Session, denom: int, qty: int) -> models.WarehouseStock:
    row = db.query(models.WarehouseStock).filter(models.WarehouseStock.denom == denom).first()
    if row is None:
        row = models.WarehouseStock(denom=denom, qty=qty)
        db.add(row)
    else:
        row.qty = qty
    db.flush()
    return row


def adjust_warehouse(db: Session, denom: int, delta: int) -> models.WarehouseStock:
    row = db.query(models.WarehouseStock).filter(models.WarehouseStock.denom == denom).first()
    if row is None:
        row = models.WarehouseStock(denom=denom, qty=delta)
        db.add(row)
    else:
        row.qty = (row.qty or 0) + delta
    db.flush()
    logger.debug("Warehouse denom %s %+d -> %s", denom, delta, row.qty)
    return row


def adjust_user_stock(db: Session, user_nik: str, coin_delta: float, big_money_delta: float) -> models.UserStock:
    row = db.query(models.UserStock).filter(models.UserStock.user_nik == user_nik).first()
    if row is None:
        row = models.UserStock(user_nik=user_nik, balance_coin=coin_delta, balance_big_money=big_money_delta)
        db.add(row)
    else:
        row.balance_coin = (row.balance_coin or 0) + coin_delta
        row.balance_big_money = (row.balance_big_money or 0) + big_money_delta
    db.flush()
    return row


def split_value(stock: dict) -> tuple[float, float]:
    """Return (coin value, big money value) of a ``{denom: qty}`` map."""
    coin = 0.0
    big = 0.0
    for d, q in (stock or {}).items():
        denom = int(d)
        val = denom * int(q)
        if is_coin(denom):
            coin += val
        else:
            big += val
    return coin, big
