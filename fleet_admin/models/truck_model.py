from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime
from datetime import datetime
import enum
from fleet_admin.database import Base


class TruckStatus(str, enum.Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_TRANSIT = "intransit"
    MAINTENANCE = "maintenance"


class Truck(Base):
    __tablename__ = "trucks"

    id = Column(String, primary_key=True)  # e.g. T-001
    name = Column(String, nullable=False)
    plate_number = Column(String, unique=True, index=True, nullable=False)
    model = Column(String, nullable=False)
    driver = Column(String, nullable=True)  # driver name, or "Unassigned"
    fuel_level = Column(Integer, default=100)
    load_capacity = Column(Numeric(5, 2), default=0)  # ton/s
    fuel_type = Column(String, default="Diesel")
    status = Column(String, default=TruckStatus.AVAILABLE.value)
    last_maintenance = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
