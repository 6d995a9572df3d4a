# coin_exchange/routers/stock.py
import logging

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models
from ..deps import get_db, get_current_user
from ..ledger import warehouse_map, set_warehouse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stock")
def get_stock(db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    """Warehouse stock as ``{denom: qty}``, every standard denom included."""
    return warehouse_map(db)


@router.put("/stock")
def update_stock(
    stock: dict = Body(...),
    db: Session = Depends(get_db),
    _: models.User = Depends(get_current_user),
):
    parsed: dict[int, int] = {}
    for denom_str, qty in stock.items():
        try:
            parsed[int(denom_str)] = int(float(qty))
        except (TypeError, ValueError) as e:
            raise HTTPException(status_code=400, detail=f"Format stok tidak valid untuk pecahan {denom_str}") from e

    for denom, qty in parsed.items():
        set_warehouse(db, denom, qty)
    db.commit()
    logger.info("Warehouse stock updated for %d denominations", len(parsed))
    return warehouse_map(db)
