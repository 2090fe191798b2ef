from sqlalchemy import Column, String, Text, Date, DateTime
from datetime import datetime
import enum
from fleet_admin.database import Base


class DriverStatus(str, enum.Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    ASSIGNED = "assigned"
    DRIVING = "driving"
    OFF_DUTY = "off-duty"
    INACTIVE = "inactive"


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(String, primary_key=True)  # e.g. D-001
    name = Column(String, nullable=False)
    license_number = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    status = Column(String, default=DriverStatus.AVAILABLE.value)
    license_type = Column(String, nullable=True)
    license_expiry = Column(Date, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(Text, nullable=True)
    assigned_vehicle = Column(String, nullable=True)  # truck id
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DriverDocument(Base):
    __tablename__ = "driver_documents"

    id = Column(String, primary_key=True)
    driver_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=True)
    path = Column(String, nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow)
    notes = Column(Text, nullable=True)
