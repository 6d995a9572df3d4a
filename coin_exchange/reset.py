"""
Bulk reset of operational data.

Deletes every row from the transactional tables, children first, inside one
database transaction. Users and stores are master data and are never touched.
"""

import logging

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)

# Children before parents so foreign keys hold at every step.
RESET_ORDER = (
    models.TransactionDetail,  # -> Transaction
    models.Transaction,        # -> Store, User, Vehicle
    models.RouteAssignment,    # -> Vehicle, User
    models.UserStock,          # -> User
    models.WarehouseStock,
    models.Vehicle,
)
PRESERVED = (models.User, models.Store)


def _delete_all(db: Session, model) -> int:
    return db.query(model).delete(synchronize_session=False)


def reset_operational_data(db: Session) -> dict[str, int]:
    """Wipe the operational tables and return deleted row counts per table.

    All-or-nothing: if any deletion fails the whole reset is rolled back and
    the original exception is re-raised.
    """
    deleted: dict[str, int] = {}
    logger.info("--- STARTING DATA RESET ---")
    try:
        for model in RESET_ORDER:
            logger.info("Deleting %s...", model.__name__)
            deleted[model.__tablename__] = _delete_all(db, model)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Data reset failed, all deletions rolled back")
        raise
    logger.info("--- DATA RESET COMPLETED SUCCESSFULLY ---")
    logger.info("Preserved tables: %s", ", ".join(m.__name__ for m in PRESERVED))
    return deleted
