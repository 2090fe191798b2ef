from __future__ import annotations
from datetime import datetime
from typing import Optional, Any, Dict

from pydantic import BaseModel, Field, field_validator

from fleet_admin.models.trip_model import TripStatus, TERMINAL_TRIP_STATUSES
from fleet_admin.schemas.common import LocalRecord, UtcDatetime


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TripBase(BaseModel):
    truck_id: str
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    travel_time_seconds: Optional[int] = None
    origin_lat: Optional[float] = Field(None, ge=-90, le=90)
    origin_lng: Optional[float] = Field(None, ge=-180, le=180)
    dest_lat: Optional[float] = Field(None, ge=-90, le=90)
    dest_lng: Optional[float] = Field(None, ge=-180, le=180)
    status: Optional[TripStatus] = None
    cargo: Optional[str] = None
    cargo_tons: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("driver_id", "cargo_tons", mode="before")
    @classmethod
    def blank_as_missing(cls, value):
        return _blank_to_none(value)


class TripCreate(TripBase):
    id: Optional[str] = None


class TripUpdate(TripBase):
    truck_id: Optional[str] = None


class TripRead(TripBase):
    id: str
    status: TripStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TripRecord(LocalRecord):
    id: str
    truck_id: Optional[str] = None
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    origin_lat: Optional[float] = None
    origin_lng: Optional[float] = None
    dest_lat: Optional[float] = None
    dest_lng: Optional[float] = None
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    travel_time_seconds: Optional[int] = None
    cargo: Optional[str] = None
    cargo_tons: Optional[float] = None
    notes: Optional[str] = None
    status: TripStatus = TripStatus.PENDING

    @field_validator("driver_id", "cargo_tons", "start_time", "end_time", mode="before")
    @classmethod
    def blank_as_missing(cls, value):
        return _blank_to_none(value)

    @property
    def is_terminal(self) -> bool:
        return self.status.value in TERMINAL_TRIP_STATUSES

    @property
    def has_coordinates(self) -> bool:
        return None not in (self.origin_lat, self.origin_lng, self.dest_lat, self.dest_lng)


class TripHistoryBase(BaseModel):
    trip_id: Optional[str] = None
    truck_id: Optional[str] = None
    driver_id: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    travel_time_seconds: Optional[int] = None
    distance_km: Optional[float] = None
    origin_lat: Optional[float] = None
    origin_lng: Optional[float] = None
    dest_lat: Optional[float] = None
    dest_lng: Optional[float] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    archived_at: Optional[datetime] = None
    data: Optional[Dict[str, Any]] = None


class TripHistoryCreate(TripHistoryBase):
    id: Optional[str] = None
    driver_name: Optional[str] = None
    cargo: Optional[str] = None
    cargo_tons: Optional[float] = None


class TripHistoryUpdate(TripHistoryCreate):
    pass


class TripHistoryRead(TripHistoryCreate):
    id: str

    model_config = {"from_attributes": True}


class DriverTripHistoryCreate(TripHistoryBase):
    id: Optional[str] = None


class DriverTripHistoryUpdate(TripHistoryBase):
    pass


class DriverTripHistoryRead(TripHistoryBase):
    id: str

    model_config = {"from_attributes": True}
