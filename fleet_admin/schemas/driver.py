from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from fleet_admin.models.driver_model import DriverStatus
from fleet_admin.schemas.common import LocalRecord


class DriverBase(BaseModel):
    name: str
    license_number: str
    email: EmailStr
    phone: Optional[str] = None
    status: Optional[DriverStatus] = None
    license_type: Optional[str] = None
    license_expiry: Optional[date] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    assigned_vehicle: Optional[str] = None


class DriverCreate(DriverBase):
    id: Optional[str] = None


class DriverUpdate(BaseModel):
    name: Optional[str] = None
    license_number: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    status: Optional[DriverStatus] = None
    license_type: Optional[str] = None
    license_expiry: Optional[date] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    assigned_vehicle: Optional[str] = None


class DriverRead(DriverBase):
    id: str
    status: DriverStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriverRecord(LocalRecord):
    id: str
    name: str = ""
    license_number: str = ""
    email: str = ""
    phone: Optional[str] = None
    status: DriverStatus = DriverStatus.AVAILABLE
    license_type: Optional[str] = None
    license_expiry: Optional[date] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    assigned_vehicle: Optional[str] = None


class DriverDocumentCreate(BaseModel):
    id: Optional[str] = None
    driver_id: str
    name: str
    type: Optional[str] = None
    path: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    notes: Optional[str] = None


class DriverDocumentUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    path: Optional[str] = None
    notes: Optional[str] = None


class DriverDocumentRead(DriverDocumentCreate):
    id: str

    model_config = {"from_attributes": True}
