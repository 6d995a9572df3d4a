# coin_exchange/routers/system.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .. import models
from ..deps import get_db, require_superadmin
from ..reset import reset_operational_data

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/system/reset-data")
def reset_system_data(db: Session = Depends(get_db), user: models.User = Depends(require_superadmin)):
    logger.info("System data reset requested by %s", user.nik)
    try:
        deleted = reset_operational_data(db)
    except Exception as e:
        return JSONResponse(
            {"error": "Failed to reset system data.", "details": str(e)},
            status_code=500,
        )
    return {"message": "System data reset successfully.", "deleted": deleted}
