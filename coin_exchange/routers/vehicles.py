# coin_exchange/routers/vehicles.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..deps import get_db, get_current_user
from ..schemas import VehicleCreate, VehicleUpdate

router = APIRouter()


def vehicle_out(v: models.Vehicle) -> dict:
    return {"id": v.id, "nopol": v.nopol, "brand": v.brand, "type": v.type, "description": v.description}


@router.get("/vehicles")
def list_vehicles(db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    return [vehicle_out(v) for v in db.query(models.Vehicle).order_by(models.Vehicle.nopol.asc()).all()]


@router.post("/vehicles", status_code=status.HTTP_201_CREATED)
def create_vehicle(payload: VehicleCreate, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    nopol = payload.nopol.strip().upper()
    if db.query(models.Vehicle).filter(models.Vehicle.nopol == nopol).first():
        raise HTTPException(status_code=409, detail=f"Armada {nopol} sudah terdaftar")
    v = models.Vehicle(**{**payload.model_dump(), "nopol": nopol})
    db.add(v)
    db.commit()
    db.refresh(v)
    return vehicle_out(v)


@router.put("/vehicles/{vehicle_id}")
def update_vehicle(vehicle_id: str, payload: VehicleUpdate, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    v = db.query(models.Vehicle).filter(models.Vehicle.id == vehicle_id).first()
    if not v:
        raise HTTPException(status_code=404, detail="Armada tidak ditemukan")
    data = payload.model_dump(exclude_unset=True)
    if data.get("nopol"):
        nopol = data["nopol"].strip().upper()
        if db.query(models.Vehicle).filter(models.Vehicle.nopol == nopol, models.Vehicle.id != vehicle_id).first():
            raise HTTPException(status_code=409, detail=f"Armada {nopol} sudah terdaftar")
        data["nopol"] = nopol
    for key, val in data.items():
        setattr(v, key, val)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Nomor polisi armada masih dipakai oleh transaksi") from e
    db.refresh(v)
    return vehicle_out(v)


@router.delete("/vehicles/{vehicle_id}")
def delete_vehicle(vehicle_id: str, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    v = db.query(models.Vehicle).filter(models.Vehicle.id == vehicle_id).first()
    if not v:
        raise HTTPException(status_code=404, detail="Armada tidak ditemukan")
    db.delete(v)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Armada masih dipakai oleh penugasan atau transaksi") from e
    return {"message": "Vehicle deleted successfully"}
