from sqlalchemy import Column, String, Numeric, Text, DateTime, JSON
from datetime import datetime
from fleet_admin.database import Base


class ScheduledMaintenance(Base):
    __tablename__ = "scheduled_maintenances"

    id = Column(String, primary_key=True)
    truck_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    status = Column(String, default="scheduled")
    performed_by = Column(String, nullable=True)
    cost = Column(Numeric(10, 2), nullable=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TruckSchedule(Base):
    __tablename__ = "truck_schedules"

    id = Column(String, primary_key=True)
    truck_id = Column(String, nullable=False, index=True)
    trip_id = Column(String, nullable=True)
    driver_id = Column(String, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    status = Column(String, default="planned")
    route = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DriverSchedule(Base):
    __tablename__ = "driver_schedules"

    id = Column(String, primary_key=True)
    driver_id = Column(String, nullable=False, index=True)
    truck_id = Column(String, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    status = Column(String, default="planned")
    route = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
