# coin_exchange/routers/transactions.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..deps import get_db, get_current_user, get_storage
from ..ledger import adjust_warehouse, adjust_user_stock
from ..schemas import TransactionCreate
from ..settings import RECEIPT_BUCKET
from ..storage import StorageClient

logger = logging.getLogger(__name__)

router = APIRouter()

SOURCES = {"field", "walk_in"}


def transaction_out(t: models.Transaction) -> dict:
    return {
        "id": t.id,
        "user_nik": t.user_nik,
        "store_code": t.store_code,
        "vehicle_nopol": t.vehicle_nopol,
        "total_coin": t.total_coin,
        "total_big_money": t.total_big_money,
        "store_team_name": t.store_team_name,
        "store_team_wa": t.store_team_wa,
        "store_team_position": t.store_team_position,
        "source": t.source,
        "status": t.status,
        "receipt_url": t.receipt_url,
        "created_at": t.created_at.isoformat() if t.created_at else None,
        "details": [{"denom": d.denom, "qty": d.qty, "type": d.type} for d in t.details],
        "store": {"code": t.store.code, "name": t.store.name} if t.store else None,
        "user": {"nik": t.user.nik, "full_name": t.user.full_name} if t.user else None,
    }


def _apply_walk_in(db: Session, payload: TransactionCreate) -> None:
    # Coins go out to the store, big money comes back into the warehouse
    for d in payload.details:
        if d.qty <= 0:
            continue
        if d.type == "COIN":
            adjust_warehouse(db, d.denom, -d.qty)
        elif d.type == "BIG_MONEY":
            adjust_warehouse(db, d.denom, d.qty)


def _apply_field(db: Session, payload: TransactionCreate) -> None:
    assignment = (
        db.query(models.RouteAssignment)
        .filter(models.RouteAssignment.cashier_id == payload.user_nik, models.RouteAssignment.status == "Active")
        .first()
    )
    if not assignment:
        raise HTTPException(status_code=400, detail="Tidak ditemukan penugasan aktif untuk petugas ini.")

    updated = dict(assignment.current_stock or {})
    for d in payload.details:
        if d.type != "COIN" or d.qty <= 0:
            continue
        key = str(d.denom)
        available = int(updated.get(key, 0) or 0)
        if available < d.qty:
            raise HTTPException(
                status_code=400,
                detail=f"Stok pecahan [{d.denom}] tidak mencukupi atau tidak tersedia di modal petugas.",
            )
        updated[key] = available - d.qty

    used_coin = sum(d.denom * d.qty for d in payload.details if d.type == "COIN")
    received_big = sum(d.denom * d.qty for d in payload.details if d.type == "BIG_MONEY")

    assignment.current_stock = updated
    adjust_user_stock(db, payload.user_nik, -used_coin, received_big)


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
def create_transaction(payload: TransactionCreate, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    source = payload.source or "field"
    if source not in SOURCES:
        raise HTTPException(status_code=400, detail=f"Sumber transaksi tidak dikenal: {source}")
    if not db.query(models.Store).filter(models.Store.code == payload.store_code).first():
        raise HTTPException(status_code=404, detail="Toko tidak ditemukan")
    if not db.query(models.User).filter(models.User.nik == payload.user_nik).first():
        raise HTTPException(status_code=404, detail="Petugas tidak ditemukan")
    if payload.vehicle_nopol and not db.query(models.Vehicle).filter(models.Vehicle.nopol == payload.vehicle_nopol).first():
        raise HTTPException(status_code=404, detail="Armada tidak ditemukan")

    logger.info(
        "[CREATE TRANSACTION] source=%s user=%s store=%s details=%d",
        source, payload.user_nik, payload.store_code, len(payload.details),
    )

    try:
        if payload.details:
            if source == "walk_in":
                _apply_walk_in(db, payload)
            else:
                _apply_field(db, payload)

        t = models.Transaction(
            user_nik=payload.user_nik,
            store_code=payload.store_code,
            vehicle_nopol=payload.vehicle_nopol or None,
            total_coin=payload.total_coin,
            total_big_money=payload.total_big_money,
            store_team_name=payload.store_team_name,
            store_team_wa=payload.store_team_wa,
            store_team_position=payload.store_team_position,
            source=source,
            status="completed",
        )
        t.details = [models.TransactionDetail(denom=d.denom, qty=d.qty, type=d.type) for d in payload.details]
        db.add(t)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    db.refresh(t)
    return transaction_out(t)


@router.get("/transactions")
def list_transactions(
    source: Optional[str] = Query(None),
    user_nik: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: models.User = Depends(get_current_user),
):
    q = db.query(models.Transaction).options(
        selectinload(models.Transaction.details),
        selectinload(models.Transaction.store),
        selectinload(models.Transaction.user),
    )
    if source:
        q = q.filter(models.Transaction.source == source)
    if user_nik:
        q = q.filter(models.Transaction.user_nik == user_nik)
    rows = q.order_by(models.Transaction.created_at.desc()).all()
    return [transaction_out(t) for t in rows]


@router.post("/transactions/{transaction_id}/receipt")
def upload_receipt(
    transaction_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: models.User = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
):
    t = db.query(models.Transaction).filter(models.Transaction.id == transaction_id).first()
    if not t:
        raise HTTPException(status_code=404, detail="Transaksi tidak ditemukan")
    content = file.file.read()
    if not content:
        raise HTTPException(status_code=400, detail="File kosong")

    url = storage.upload_pdf(RECEIPT_BUCKET, f"transactions/{t.id}.pdf", content)
    t.receipt_url = url
    db.commit()
    return {"id": t.id, "receipt_url": url}
