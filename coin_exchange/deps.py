# coin_exchange/deps.py
import logging

from fastapi import Depends, HTTPException, Request, status
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from .settings import SECRET_KEY, ALGORITHM, SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY
from .database import SessionLocal
from .storage import StorageClient, StorageConfigError, SupabaseStorage
from . import models

logger = logging.getLogger(__name__)

ROLES = ("SUPER_ADMIN", "ADMIN", "FIELD")
POSITIONS = ("DRIVER", "CASHIER", "ADMIN")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage() -> StorageClient:
    try:
        return SupabaseStorage(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    except StorageConfigError as e:
        logger.warning("Object storage unavailable: %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Penyimpanan file belum dikonfigurasi") from e


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token tidak valid atau sudah kadaluarsa.") from e


def get_current_user(request: Request, db: Session = Depends(get_db)) -> models.User:
    auth_header = request.headers.get("authorization") or ""
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Akses ditolak. Token tidak ditemukan.")

    payload = decode_token(parts[1].strip())
    nik = payload.get("sub")
    if not nik:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token tidak valid (tanpa sub)")

    user = db.query(models.User).filter(models.User.nik == nik).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Pengguna tidak ditemukan")
    return user


def require_roles(*roles: str):
    """Build a dependency that only lets users with one of ``roles`` through."""
    def role_checker(user: models.User = Depends(get_current_user)) -> models.User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Anda tidak memiliki akses ke resource ini.")
        return user
    return role_checker


require_superadmin = require_roles("SUPER_ADMIN")
require_admin = require_roles("SUPER_ADMIN", "ADMIN")


def normalize_role(name: str | None) -> str:
    n = (name or "").strip().upper().replace(" ", "_")
    if n in {"SUPERADMIN", "SUPER_ADMIN"}:
        return "SUPER_ADMIN"
    if n in {"ADMIN", "ADMINISTRATOR"}:
        return "ADMIN"
    return n


def normalize_position(name: str | None) -> str:
    n = (name or "").strip().upper()
    if n in {"KASIR"}:
        return "CASHIER"
    if n in {"SUPIR", "SOPIR"}:
        return "DRIVER"
    return n
