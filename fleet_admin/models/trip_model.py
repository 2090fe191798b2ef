from sqlalchemy import Column, Integer, String, Float, Text, DateTime, JSON
from datetime import datetime
import enum
from fleet_admin.database import Base


class TripStatus(str, enum.Enum):
    PENDING = "pending"
    IN_TRANSIT = "intransit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_TRIP_STATUSES = (TripStatus.COMPLETED.value, TripStatus.CANCELLED.value)


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True)  # e.g. TRIP-1718000000000
    truck_id = Column(String, nullable=False, index=True)
    driver_id = Column(String, nullable=True)
    driver_name = Column(String, nullable=True)

    origin = Column(Text, nullable=True)
    destination = Column(Text, nullable=True)
    origin_lat = Column(Float, nullable=True)
    origin_lng = Column(Float, nullable=True)
    dest_lat = Column(Float, nullable=True)
    dest_lng = Column(Float, nullable=True)

    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    travel_time_seconds = Column(Integer, nullable=True)

    status = Column(String, default=TripStatus.PENDING.value)
    cargo = Column(String, nullable=True)
    cargo_tons = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TripHistory(Base):
    """Archived copy of a trip; not linked to trips by foreign key"""
    __tablename__ = "trip_histories"

    id = Column(String, primary_key=True)
    trip_id = Column(String, nullable=True)
    truck_id = Column(String, nullable=True)
    driver_id = Column(String, nullable=True)
    driver_name = Column(String, nullable=True)
    origin = Column(Text, nullable=True)
    destination = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    travel_time_seconds = Column(Integer, nullable=True)
    distance_km = Column(Float, nullable=True)
    origin_lat = Column(Float, nullable=True)
    origin_lng = Column(Float, nullable=True)
    dest_lat = Column(Float, nullable=True)
    dest_lng = Column(Float, nullable=True)
    status = Column(String, nullable=True)
    cargo = Column(String, nullable=True)
    cargo_tons = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    archived_at = Column(DateTime, nullable=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DriverTripHistory(Base):
    __tablename__ = "driver_trip_histories"

    id = Column(String, primary_key=True)
    trip_id = Column(String, nullable=True)
    driver_id = Column(String, nullable=True, index=True)
    truck_id = Column(String, nullable=True)
    origin = Column(Text, nullable=True)
    destination = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    travel_time_seconds = Column(Integer, nullable=True)
    distance_km = Column(Float, nullable=True)
    origin_lat = Column(Float, nullable=True)
    origin_lng = Column(Float, nullable=True)
    dest_lat = Column(Float, nullable=True)
    dest_lng = Column(Float, nullable=True)
    status = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    archived_at = Column(DateTime, nullable=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
