# coin_exchange/routers/stores.py
import io
import logging
import os

import pandas as pd
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..deps import get_db, get_current_user, require_admin
from ..schemas import StoreCreate, StoreUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_BRANCH = "Jombang 1 (G148)"
# Template header: KODE,NAMA,AREA_SPV,AREA_MGR,ALAMAT,CABANG
IMPORT_COLUMNS = {
    "KODE": "code",
    "NAMA": "name",
    "AREA_SPV": "area_spv",
    "AREA_MGR": "area_mgr",
    "ALAMAT": "address",
    "CABANG": "branch",
}


def store_out(s: models.Store) -> dict:
    return {
        "code": s.code,
        "name": s.name,
        "address": s.address,
        "area_spv": s.area_spv,
        "area_mgr": s.area_mgr,
        "branch": s.branch,
    }


@router.get("/stores")
def list_stores(db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    rows = db.query(models.Store).order_by(models.Store.code.asc()).all()
    return [store_out(s) for s in rows]


@router.post("/stores", status_code=status.HTTP_201_CREATED)
def create_store(payload: StoreCreate, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    code = payload.code.strip()
    if db.query(models.Store).filter(models.Store.code == code).first():
        raise HTTPException(status_code=409, detail=f"Kode toko {code} sudah ada")
    row = models.Store(**{**payload.model_dump(), "code": code})
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Store %s created", row.code)
    return store_out(row)


@router.put("/stores/{code}")
def update_store(code: str, payload: StoreUpdate, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    row = db.query(models.Store).filter(models.Store.code == code).first()
    if not row:
        raise HTTPException(status_code=404, detail="Toko tidak ditemukan")
    for key, val in payload.model_dump(exclude_unset=True).items():
        setattr(row, key, val)
    db.commit()
    db.refresh(row)
    return store_out(row)


@router.delete("/stores/{code}")
def delete_store(code: str, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    row = db.query(models.Store).filter(models.Store.code == code).first()
    if not row:
        raise HTTPException(status_code=404, detail="Toko tidak ditemukan")
    db.delete(row)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Toko masih dipakai oleh transaksi") from e
    return {"message": "Store deleted successfully"}


def _read_table(filename: str, content: bytes) -> pd.DataFrame:
    ext = os.path.splitext(filename)[1].lower()
    buf = io.BytesIO(content)
    if ext in (".csv", ".txt"):
        return pd.read_csv(buf, dtype=str, keep_default_na=False)
    if ext in (".xlsx", ".xls"):
        try:
            return pd.read_excel(buf, dtype=str).fillna("")
        except ImportError as e:
            raise HTTPException(status_code=400, detail="Gagal membaca Excel (butuh openpyxl untuk .xlsx)") from e
    raise HTTPException(status_code=400, detail="Format file tidak didukung. Unggah .csv atau .xlsx")


@router.post("/stores/import")
def import_stores(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: models.User = Depends(require_admin),
):
    filename = file.filename or "upload.csv"
    content = file.file.read()
    if not content:
        raise HTTPException(status_code=400, detail="File kosong")

    try:
        df = _read_table(filename, content)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Gagal memproses file: {e}") from e

    df.columns = [str(c).strip().upper() for c in df.columns]
    missing = [c for c in ("KODE", "NAMA") if c not in df.columns]
    if missing:
        raise HTTPException(status_code=400, detail=f"Kolom wajib tidak ada: {', '.join(missing)}")

    existing = {c for (c,) in db.query(models.Store.code).all()}
    created, skipped = [], []
    for record in df.to_dict(orient="records"):
        data = {field: str(record.get(col, "") or "").strip() for col, field in IMPORT_COLUMNS.items()}
        code = data["code"]
        if not code or not data["name"]:
            continue
        if code in existing:
            skipped.append(code)
            continue
        data["branch"] = data["branch"] or DEFAULT_BRANCH
        db.add(models.Store(**data))
        existing.add(code)
        created.append(code)
    db.commit()
    logger.info("Store import %s: %d created, %d skipped", filename, len(created), len(skipped))
    return {"created": len(created), "skipped": len(skipped), "codes": created}
