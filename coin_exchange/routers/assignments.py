# coin_exchange/routers/assignments.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models
from ..deps import get_db, get_current_user
from ..ledger import adjust_warehouse, adjust_user_stock, split_value
from ..schemas import AssignmentCreate, AssignmentUpdate, AssignmentComplete

logger = logging.getLogger(__name__)

router = APIRouter()

STATUSES = {"Ready", "Active", "Completed"}


def _person(u: models.User | None) -> dict | None:
    if u is None:
        return None
    return {"nik": u.nik, "full_name": u.full_name}


def assignment_out(a: models.RouteAssignment) -> dict:
    v = a.vehicle
    return {
        "id": a.id,
        "date": a.date,
        "vehicle_id": a.vehicle_id,
        "cashier_id": a.cashier_id,
        "driver_id": a.driver_id,
        "initial_stock": a.initial_stock or {},
        "current_stock": a.current_stock or {},
        "status": a.status,
        "store_codes": a.store_codes or [],
        "current_stop_index": a.current_stop_index or 0,
        "created_at": a.created_at.isoformat() if a.created_at else None,
        "vehicle": {"id": v.id, "nopol": v.nopol} if v else None,
        "cashier": _person(a.cashier),
        "driver": _person(a.driver),
    }


def _get_or_404(db: Session, assignment_id: str) -> models.RouteAssignment:
    a = db.query(models.RouteAssignment).filter(models.RouteAssignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Penugasan tidak ditemukan")
    return a


def _stock_map(stock: dict | None) -> dict:
    # JSON columns keep denominations as string keys
    return {str(denom): int(qty) for denom, qty in (stock or {}).items()}


def _check_status(value: str | None) -> None:
    if value is not None and value not in STATUSES:
        raise HTTPException(status_code=400, detail=f"Status tidak dikenal: {value}")


@router.get("/assignments")
def list_assignments(db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    rows = db.query(models.RouteAssignment).order_by(models.RouteAssignment.created_at.desc()).all()
    return [assignment_out(a) for a in rows]


@router.post("/assignments")
def create_assignment(payload: AssignmentCreate, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    if not (payload.date and payload.vehicle_id and payload.cashier_id and payload.driver_id):
        raise HTTPException(status_code=400, detail="Data mandatori (Tanggal, Armada, Kasir, Supir) harus diisi.")
    _check_status(payload.status)

    existing = (
        db.query(models.RouteAssignment)
        .filter(
            models.RouteAssignment.date == payload.date,
            models.RouteAssignment.status != "Completed",
            or_(
                models.RouteAssignment.vehicle_id == payload.vehicle_id,
                models.RouteAssignment.cashier_id == payload.cashier_id,
                models.RouteAssignment.driver_id == payload.driver_id,
            ),
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="Petugas atau armada sudah memiliki tugas aktif pada tanggal tersebut.")

    if not db.query(models.Vehicle).filter(models.Vehicle.id == payload.vehicle_id).first():
        raise HTTPException(status_code=404, detail="Armada tidak ditemukan")
    for nik in (payload.cashier_id, payload.driver_id):
        if not db.query(models.User).filter(models.User.nik == nik).first():
            raise HTTPException(status_code=404, detail=f"Petugas {nik} tidak ditemukan")

    initial_stock = _stock_map(payload.initial_stock)
    # Working capital leaves the warehouse and is credited to the cashier
    for denom, qty in initial_stock.items():
        adjust_warehouse(db, int(denom), -int(qty))
    if initial_stock:
        coin, big = split_value(initial_stock)
        adjust_user_stock(db, payload.cashier_id, coin, big)

    a = models.RouteAssignment(
        date=payload.date,
        vehicle_id=payload.vehicle_id,
        cashier_id=payload.cashier_id,
        driver_id=payload.driver_id,
        initial_stock=initial_stock,
        current_stock=_stock_map(payload.current_stock) or initial_stock,
        status=payload.status or "Ready",
        store_codes=payload.store_codes or [],
        current_stop_index=0,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    logger.info("Assignment %s created for %s on %s", a.id, a.cashier_id, a.date)
    return assignment_out(a)


@router.put("/assignments/{assignment_id}")
def update_assignment(assignment_id: str, payload: AssignmentUpdate, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    a = _get_or_404(db, assignment_id)
    data = payload.model_dump(exclude_unset=True)
    _check_status(data.get("status"))
    for key in ("initial_stock", "current_stock"):
        if data.get(key) is not None:
            data[key] = _stock_map(data[key])
    for key, val in data.items():
        setattr(a, key, val)
    db.commit()
    db.refresh(a)
    return assignment_out(a)


@router.post("/assignments/{assignment_id}/complete")
def complete_assignment(assignment_id: str, payload: AssignmentComplete, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    a = _get_or_404(db, assignment_id)
    remaining = _stock_map(payload.remaining_stock)

    for denom, qty in remaining.items():
        if int(qty) > 0:
            adjust_warehouse(db, int(denom), int(qty))
    if remaining:
        coin, big = split_value(remaining)
        adjust_user_stock(db, a.cashier_id, -coin, -big)

    a.status = "Completed"
    a.current_stock = remaining
    db.commit()
    db.refresh(a)
    logger.info("Assignment %s completed", a.id)
    return {
        "message": "Assignment completed successfully",
        "assignment": assignment_out(a),
        "returned_stock": remaining,
    }


@router.delete("/assignments/{assignment_id}")
def delete_assignment(assignment_id: str, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    a = _get_or_404(db, assignment_id)
    if a.status == "Active":
        # Cancelled mid-route: the initial stock goes back to the warehouse
        for denom, qty in (a.initial_stock or {}).items():
            if int(qty) > 0:
                adjust_warehouse(db, int(denom), int(qty))
    db.delete(a)
    db.commit()
    return {"message": "Assignment deleted successfully, stock returned to warehouse"}
