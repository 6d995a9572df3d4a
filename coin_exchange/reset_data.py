"""
Maintenance script: wipe transactions, assignments, stock and vehicles.

    python -m coin_exchange.reset_data

Users and stores are kept. Exit code 0 on success, 1 on any error.
"""

import logging
import sys

from .database import SessionLocal
from .reset import reset_operational_data
from .settings import LOG_LEVEL

logger = logging.getLogger(__name__)


def main() -> int:
    db = SessionLocal()
    try:
        deleted = reset_operational_data(db)
    except Exception as e:
        logger.error("ERROR RESETTING DATA: %s", e)
        return 1
    finally:
        db.close()
    for table, count in deleted.items():
        logger.info("%s: %d rows deleted", table, count)
    return 0


def run() -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(main())


if __name__ == "__main__":
    run()
