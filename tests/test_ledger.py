from coin_exchange import models
from coin_exchange.ledger import adjust_user_stock, adjust_warehouse, is_coin, split_value, warehouse_map


def test_coin_boundary():
    assert is_coin(1000)
    assert not is_coin(2000)


def test_split_value():
    assert split_value({"100": 10, "1000": 2, "50000": 1}) == (3000, 50000)
    assert split_value({}) == (0, 0)


def test_adjust_warehouse_creates_negative_rows(db):
    adjust_warehouse(db, 200, -5)
    db.commit()
    assert warehouse_map(db)[200] == -5


def test_adjust_user_stock_accumulates(db, cashier):
    adjust_user_stock(db, cashier.nik, 1000, 0)
    adjust_user_stock(db, cashier.nik, -250, 5000)
    db.commit()
    row = db.query(models.UserStock).filter(models.UserStock.user_nik == cashier.nik).one()
    assert row.balance_coin == 750
    assert row.balance_big_money == 5000
