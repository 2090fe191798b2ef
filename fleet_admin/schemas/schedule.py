from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional, Any, Dict

from pydantic import BaseModel


class ScheduledMaintenanceCreate(BaseModel):
    id: Optional[str] = None
    truck_id: str
    title: str
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: Optional[str] = "scheduled"
    performed_by: Optional[str] = None
    cost: Optional[Decimal] = None
    data: Optional[Dict[str, Any]] = None


class ScheduledMaintenanceUpdate(BaseModel):
    truck_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: Optional[str] = None
    performed_by: Optional[str] = None
    cost: Optional[Decimal] = None
    data: Optional[Dict[str, Any]] = None


class ScheduledMaintenanceRead(ScheduledMaintenanceCreate):
    id: str

    model_config = {"from_attributes": True}


class ScheduleBase(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[str] = "planned"
    route: Optional[str] = None
    notes: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class TruckScheduleCreate(ScheduleBase):
    id: Optional[str] = None
    truck_id: str
    trip_id: Optional[str] = None
    driver_id: Optional[str] = None


class TruckScheduleUpdate(ScheduleBase):
    truck_id: Optional[str] = None
    trip_id: Optional[str] = None
    driver_id: Optional[str] = None
    status: Optional[str] = None


class TruckScheduleRead(TruckScheduleCreate):
    id: str

    model_config = {"from_attributes": True}


class DriverScheduleCreate(ScheduleBase):
    id: Optional[str] = None
    driver_id: str
    truck_id: Optional[str] = None


class DriverScheduleUpdate(ScheduleBase):
    driver_id: Optional[str] = None
    truck_id: Optional[str] = None
    status: Optional[str] = None


class DriverScheduleRead(DriverScheduleCreate):
    id: str

    model_config = {"from_attributes": True}
