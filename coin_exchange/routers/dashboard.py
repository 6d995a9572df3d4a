# coin_exchange/routers/dashboard.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..deps import get_db, require_admin
from .. import models

router = APIRouter()


@router.get("/dashboard/summary")
def dashboard_summary(
    db: Session = Depends(get_db),
    _: models.User = Depends(require_admin),
):
    total = db.query(models.Transaction).count()
    total_coin, total_big = db.query(
        func.coalesce(func.sum(models.Transaction.total_coin), 0),
        func.coalesce(func.sum(models.Transaction.total_big_money), 0),
    ).one()

    total_stores = db.query(models.Store).count()
    active_stores = db.query(func.count(func.distinct(models.Transaction.store_code))).scalar() or 0
    total_vehicles = db.query(models.Vehicle).count()

    # Top stores by transaction count
    q_store = (
        db.query(models.Store.code, models.Store.name, func.count(models.Transaction.id))
        .join(models.Transaction, models.Transaction.store_code == models.Store.code)
        .group_by(models.Store.code, models.Store.name)
        .order_by(func.count(models.Transaction.id).desc())
        .limit(10)
        .all()
    )
    by_store = [{"code": c, "name": n or "(tanpa nama)", "count": int(cnt)} for c, n, cnt in q_store]

    today = datetime.now(timezone.utc).date().isoformat()
    routes = db.query(models.RouteAssignment).filter(models.RouteAssignment.date.like(f"{today}%")).all()
    today_routes = []
    for r in routes:
        stops = len(r.store_codes or [])
        idx = r.current_stop_index or 0
        progress = round(((idx + 0.5) / stops) * 100) if stops else 0
        today_routes.append({
            "id": r.id,
            "vehicle_id": r.vehicle_id,
            "status": r.status,
            "stop": idx + 1,
            "stops": stops,
            "progress": min(progress, 100),
        })

    return {
        "total_transactions": total,
        "total_coin": float(total_coin),
        "total_big_money": float(total_big),
        "active_stores": int(active_stores),
        "total_stores": total_stores,
        "total_vehicles": total_vehicles,
        "by_store": by_store,
        "today_routes": today_routes,
    }
