import logging
import os
import uvicorn

from coin_exchange.settings import LOG_LEVEL


def _env_bool(name: str, default: bool = True) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


if __name__ == "__main__":
    # Precedence: UVICORN_HOST/PORT, then HOST/PORT; defaults to 0.0.0.0:4000.
    host = os.getenv("UVICORN_HOST", os.getenv("HOST", "0.0.0.0"))
    try:
        port = int(os.getenv("UVICORN_PORT", os.getenv("PORT", "4000")))
    except ValueError:
        port = 4000

    reload = _env_bool("RELOAD", True)

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "coin_exchange.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=LOG_LEVEL.lower(),
    )
