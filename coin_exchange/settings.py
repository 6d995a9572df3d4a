# coin_exchange/settings.py
from pathlib import Path
import os
from dotenv import load_dotenv

load_dotenv()

def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

def _env_list(name: str, default: list[str] | None = None) -> list[str]:
    val = os.getenv(name)
    if not val:
        return default or []
    return [v.strip() for v in val.split(",") if v.strip()]

BASE_DIR = Path(__file__).resolve().parent.parent  # project root
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'coin_exchange.db'}")

SECRET_KEY = os.getenv("JWT_SECRET", "change-me-coin-exchange")  # override via ENV/.env
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(24 * 60)))

# Security & networking
CORS_ORIGINS = _env_list("CORS_ORIGINS", default=["*"])  # e.g. "http://localhost:3000,https://example.com"
ALLOWED_HOSTS = _env_list("ALLOWED_HOSTS", default=["*"])
ENABLE_HTTPS_REDIRECT = _env_bool("ENABLE_HTTPS_REDIRECT", False)

# Object storage (Supabase)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
RECEIPT_BUCKET = os.getenv("RECEIPT_BUCKET", "receipts")

# Client side
API_URL = os.getenv("API_URL", os.getenv("NEXT_PUBLIC_API_URL", "/api"))
API_ORIGIN = os.getenv("API_ORIGIN", "http://127.0.0.1:8000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
