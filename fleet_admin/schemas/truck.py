from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from fleet_admin.models.truck_model import TruckStatus
from fleet_admin.schemas.common import LocalRecord

UNASSIGNED = "Unassigned"


class TruckBase(BaseModel):
    name: str
    plate_number: str
    model: str
    driver: Optional[str] = None
    fuel_level: Optional[int] = Field(None, ge=0, le=100)
    load_capacity: Optional[Decimal] = Field(None, ge=0)
    fuel_type: Optional[str] = None
    status: Optional[TruckStatus] = None
    last_maintenance: Optional[date] = None


class TruckCreate(TruckBase):
    id: Optional[str] = None


class TruckUpdate(BaseModel):
    name: Optional[str] = None
    plate_number: Optional[str] = None
    model: Optional[str] = None
    driver: Optional[str] = None
    fuel_level: Optional[int] = Field(None, ge=0, le=100)
    load_capacity: Optional[Decimal] = Field(None, ge=0)
    fuel_type: Optional[str] = None
    status: Optional[TruckStatus] = None
    last_maintenance: Optional[date] = None


class TruckRead(TruckBase):
    id: str
    status: TruckStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TruckRecord(LocalRecord):
    id: str
    name: str = ""
    plate_number: str = ""
    model: str = ""
    driver: Optional[str] = UNASSIGNED
    fuel_level: int = 100
    load_capacity: Optional[float] = None
    fuel_type: Optional[str] = "Diesel"
    status: TruckStatus = TruckStatus.AVAILABLE
    last_maintenance: Optional[date] = None

    @property
    def has_driver(self) -> bool:
        return bool(self.driver) and self.driver != UNASSIGNED
