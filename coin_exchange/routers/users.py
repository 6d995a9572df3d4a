# coin_exchange/routers/users.py
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..deps import get_db, get_current_user, require_superadmin, require_admin, normalize_role, normalize_position, ROLES, POSITIONS
from ..schemas import LoginRequest, UserCreate, UserUpdate
from ..settings import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)

router = APIRouter()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

INITIAL_NIK = "99999"
INITIAL_PASSWORD = "superadmin"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _is_hashed(stored: str) -> bool:
    return stored.startswith("$2b$") or stored.startswith("$2a$")


def user_out(u: models.User) -> dict:
    return {
        "nik": u.nik,
        "full_name": u.full_name,
        "role": u.role,
        "position": u.position,
        "created_at": u.created_at.isoformat() if u.created_at else None,
    }


def _checked_role(role: str) -> str:
    r = normalize_role(role)
    if r not in ROLES:
        raise HTTPException(status_code=400, detail=f"Role tidak dikenal: {role}")
    return r


def _checked_position(position: str) -> str:
    p = normalize_position(position)
    if p not in POSITIONS:
        raise HTTPException(status_code=400, detail=f"Posisi tidak dikenal: {position}")
    return p


def ensure_initial_user(db: Session, reset_password: bool = False) -> models.User:
    """Create the SUPER_ADMIN bootstrap account if it is missing."""
    user = db.query(models.User).filter(models.User.nik == INITIAL_NIK).first()
    if user is None:
        user = models.User(
            nik=INITIAL_NIK,
            password=pwd_context.hash(INITIAL_PASSWORD),
            full_name="Super Administrator",
            role="SUPER_ADMIN",
            position="ADMIN",
        )
        db.add(user)
        logger.info("Default superuser '%s' dibuat.", INITIAL_NIK)
    elif reset_password:
        user.password = pwd_context.hash(INITIAL_PASSWORD)
    db.commit()
    db.refresh(user)
    return user


# Public routes (no token needed)
@router.post("/users/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.nik == payload.nik).first()
    if not user:
        raise HTTPException(status_code=401, detail="NIK atau Password salah")

    if _is_hashed(user.password):
        ok = pwd_context.verify(payload.password, user.password)
    else:
        # Legacy plain-text row: accept once and re-hash
        ok = user.password == payload.password
        if ok:
            user.password = pwd_context.hash(payload.password)
            db.commit()
            logger.info("[AUTH] Auto-migrated password for NIK: %s", user.nik)
    if not ok:
        raise HTTPException(status_code=401, detail="NIK atau Password salah")

    token = create_access_token({"sub": user.nik, "role": user.role, "position": user.position})
    return {**user_out(user), "token": token}


@router.post("/users/setup")
def setup_initial_user(db: Session = Depends(get_db)):
    user = ensure_initial_user(db, reset_password=True)
    return {"message": "Initial user created & secured", "user": user_out(user)}


# Protected routes
@router.get("/users/me")
def me(user: models.User = Depends(get_current_user)):
    return user_out(user)


@router.get("/users")
def list_users(db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    users = db.query(models.User).order_by(models.User.created_at.asc()).all()
    return [user_out(u) for u in users]


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db), _: models.User = Depends(require_superadmin)):
    if db.query(models.User).filter(models.User.nik == payload.nik).first():
        raise HTTPException(status_code=409, detail="NIK sudah terdaftar")
    u = models.User(
        nik=payload.nik,
        full_name=payload.full_name,
        password=pwd_context.hash(payload.password),
        role=_checked_role(payload.role),
        position=_checked_position(payload.position),
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return user_out(u)


@router.put("/users/{nik}")
def update_user(nik: str, payload: UserUpdate, db: Session = Depends(get_db), _: models.User = Depends(require_admin)):
    u = db.query(models.User).filter(models.User.nik == nik).first()
    if not u:
        raise HTTPException(status_code=404, detail="User tidak ditemukan")
    if payload.full_name is not None:
        u.full_name = payload.full_name
    if payload.role:
        u.role = _checked_role(payload.role)
    if payload.position:
        u.position = _checked_position(payload.position)
    if payload.password:
        u.password = pwd_context.hash(payload.password)
    db.commit()
    db.refresh(u)
    return user_out(u)


@router.delete("/users/{nik}")
def delete_user(nik: str, db: Session = Depends(get_db), _: models.User = Depends(require_superadmin)):
    u = db.query(models.User).filter(models.User.nik == nik).first()
    if not u:
        raise HTTPException(status_code=404, detail="User tidak ditemukan")
    db.delete(u)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="User masih dipakai oleh data lain") from e
    return {"message": "User deleted successfully"}
