# coin_exchange/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, List


class LoginRequest(BaseModel):
    nik: str
    password: str


class UserCreate(BaseModel):
    nik: str = Field(min_length=1, max_length=32)
    full_name: str = Field(min_length=1)
    password: str = Field(min_length=4)
    role: str = "FIELD"
    position: str = "CASHIER"


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[str] = None
    position: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=4)


class StoreCreate(BaseModel):
    code: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1)
    address: Optional[str] = None
    area_spv: Optional[str] = None
    area_mgr: Optional[str] = None
    branch: Optional[str] = None


class StoreUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    area_spv: Optional[str] = None
    area_mgr: Optional[str] = None
    branch: Optional[str] = None


class VehicleCreate(BaseModel):
    nopol: str = Field(min_length=1, max_length=32)
    brand: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None


class VehicleUpdate(BaseModel):
    nopol: Optional[str] = None
    brand: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None


class AssignmentCreate(BaseModel):
    # mandatory fields are checked in the router to return a single 400 message
    date: Optional[str] = None
    vehicle_id: Optional[str] = None
    cashier_id: Optional[str] = None
    driver_id: Optional[str] = None
    initial_stock: Optional[Dict[int, int]] = None
    current_stock: Optional[Dict[int, int]] = None
    status: Optional[str] = None
    store_codes: Optional[List[str]] = None


class AssignmentUpdate(BaseModel):
    date: Optional[str] = None
    vehicle_id: Optional[str] = None
    cashier_id: Optional[str] = None
    driver_id: Optional[str] = None
    initial_stock: Optional[Dict[int, int]] = None
    current_stock: Optional[Dict[int, int]] = None
    status: Optional[str] = None
    store_codes: Optional[List[str]] = None
    current_stop_index: Optional[int] = None


class AssignmentComplete(BaseModel):
    remaining_stock: Optional[Dict[int, int]] = None


class TransactionDetailIn(BaseModel):
    denom: int
    qty: int
    type: str = Field(pattern="^(COIN|BIG_MONEY)$")


class TransactionCreate(BaseModel):
    user_nik: str
    store_code: str
    vehicle_nopol: Optional[str] = None
    total_coin: float = 0
    total_big_money: float = 0
    store_team_name: Optional[str] = None
    store_team_wa: Optional[str] = None
    store_team_position: Optional[str] = None
    source: str = "field"
    details: List[TransactionDetailIn] = []
