import re
from typing import Iterable, Optional

from fleet_admin.core.exceptions import ConflictError, EligibilityError, ValidationError
from fleet_admin.models.driver_model import DriverStatus
from fleet_admin.models.trip_model import TERMINAL_TRIP_STATUSES
from fleet_admin.models.truck_model import TruckStatus
from fleet_admin.schemas.driver import DriverRecord
from fleet_admin.schemas.trip import TripRecord
from fleet_admin.schemas.truck import TruckRecord, UNASSIGNED

PLATE_PATTERN = re.compile(r"^[A-Z]{3}-\d{4}$")
MAX_LOAD_CAPACITY = 99
LICENSE_DIGITS = 12
PHONE_SUFFIX_DIGITS = 9

DRIVER_STATUSES_BLOCKING_ASSIGNMENT = {
    DriverStatus.DRIVING,
    DriverStatus.OFF_DUTY,
    DriverStatus.INACTIVE,
    DriverStatus.PENDING,
}
TRUCK_STATUSES_BLOCKING_ASSIGNMENT = {
    TruckStatus.IN_TRANSIT,
    TruckStatus.MAINTENANCE,
    TruckStatus.PENDING,
}


# ----------------------------------------
# Assignment gating
# ----------------------------------------

def can_assign_vehicle(driver_status: DriverStatus) -> bool:
    """A driver can take a vehicle unless driving, off duty, inactive or pending"""
    return DriverStatus(driver_status) not in DRIVER_STATUSES_BLOCKING_ASSIGNMENT


def can_assign_driver(truck_status: TruckStatus) -> bool:
    """A truck can take a driver unless in transit, pending or in maintenance"""
    return TruckStatus(truck_status) not in TRUCK_STATUSES_BLOCKING_ASSIGNMENT


def is_unassign_blocked(truck_status: Optional[TruckStatus], driver_status: Optional[DriverStatus]) -> bool:
    if truck_status is not None and TruckStatus(truck_status) in (TruckStatus.IN_TRANSIT, TruckStatus.PENDING):
        return True
    return driver_status is not None and DriverStatus(driver_status) == DriverStatus.PENDING


def ensure_assignable(driver: DriverRecord, truck: TruckRecord) -> None:
    if not can_assign_vehicle(driver.status):
        raise EligibilityError(
            f"Cannot assign a vehicle while driver is {driver.status.value}."
        )
    if not can_assign_driver(truck.status):
        raise EligibilityError(
            f"Cannot assign driver to a truck that is {truck.status.value}."
        )


def ensure_unassignable(truck: Optional[TruckRecord], driver: Optional[DriverRecord]) -> None:
    if is_unassign_blocked(truck.status if truck else None, driver.status if driver else None):
        raise EligibilityError("Cannot unassign while the truck or driver has a pending or active trip.")


# ----------------------------------------
# Active trips
# ----------------------------------------

def active_trips(
    trips: Iterable[TripRecord],
    truck_id: Optional[str] = None,
    driver_id: Optional[str] = None
) -> list:
    """Trips that are neither completed nor cancelled for a truck and/or driver"""
    matches = []
    for trip in trips:
        if trip.status.value in TERMINAL_TRIP_STATUSES:
            continue
        if truck_id is not None and str(trip.truck_id) == str(truck_id):
            matches.append(trip)
        elif driver_id is not None and str(trip.driver_id) == str(driver_id):
            matches.append(trip)
    return matches


def ensure_deletable(trips: Iterable[TripRecord], truck_id: Optional[str] = None, driver_id: Optional[str] = None) -> None:
    if active_trips(trips, truck_id=truck_id, driver_id=driver_id):
        subject = "truck" if truck_id is not None else "driver"
        raise EligibilityError(f"Cannot delete {subject} while it has scheduled or active trips.")


def ensure_schedulable(truck: TruckRecord, trips: Iterable[TripRecord], exclude_trip_id: Optional[str] = None) -> None:
    """
    A trip can only be put on an assigned truck with a real driver and no
    other pending or in-transit trip. ``exclude_trip_id`` is the trip being
    edited, which never blocks itself.
    """
    if truck.status != TruckStatus.ASSIGNED:
        raise EligibilityError(f"Cannot schedule a trip on a truck that is {truck.status.value}.")
    if not truck.has_driver:
        raise EligibilityError("Cannot schedule a trip on a truck without an assigned driver.")
    busy = [t for t in active_trips(trips, truck_id=truck.id) if t.id != exclude_trip_id]
    if busy:
        raise EligibilityError(f"Truck {truck.id} already has a scheduled or active trip.")


def _assignment_value(value) -> str:
    if value is None or value == UNASSIGNED:
        return ""
    return str(value).strip()


def ensure_assignment_unchanged(before, after, field: str) -> None:
    """Assignment goes through assign/unassign, never through a plain edit"""
    if _assignment_value(getattr(before, field)) != _assignment_value(getattr(after, field)):
        raise EligibilityError("Change the assignment with assign or unassign, not by editing the record.")


def ensure_cargo_fits(cargo_tons: Optional[float], truck: TruckRecord) -> None:
    if cargo_tons is None or truck.load_capacity is None:
        return
    if float(cargo_tons) > float(truck.load_capacity):
        raise ValidationError(f"Cargo exceeds vehicle capacity ({truck.load_capacity} ton/s)")


# ----------------------------------------
# Truck field rules
# ----------------------------------------

def format_plate(value: str) -> str:
    """Upper-case and insert the dash: 'abc1234' -> 'ABC-1234'"""
    raw = re.sub(r"[^A-Za-z0-9]", "", value or "").upper()
    letters, digits = raw[:3], raw[3:7]
    return f"{letters}-{digits}" if digits else letters


def validate_truck(truck: TruckRecord) -> None:
    for field, label in (("name", "Name"), ("plate_number", "Plate Number"), ("model", "Model")):
        if not str(getattr(truck, field) or "").strip():
            raise ValidationError(f"{label} is required")
    if truck.load_capacity is None:
        raise ValidationError("Capacity is required")
    if not PLATE_PATTERN.match(truck.plate_number):
        raise ValidationError("Plate number must be in format ABC-1234")
    if truck.load_capacity > MAX_LOAD_CAPACITY:
        raise ValidationError(f"Capacity must be at most 2 digits (max {MAX_LOAD_CAPACITY})")
    if truck.status == TruckStatus.IN_TRANSIT and not truck.has_driver:
        raise ValidationError("Cannot mark 'In Transit' without an assigned driver")
    if truck.status == TruckStatus.AVAILABLE and truck.has_driver:
        raise ValidationError("Cannot mark 'Available' while a driver is assigned")
    if truck.status == TruckStatus.MAINTENANCE and truck.has_driver:
        raise ValidationError("Cannot mark 'Maintenance' while a driver is assigned")


def ensure_unique_plate(truck: TruckRecord, trucks: Iterable[TruckRecord]) -> None:
    plate = truck.plate_number.upper()
    for other in trucks:
        if other.id != truck.id and (other.plate_number or "").upper() == plate:
            raise ConflictError("A truck with this plate number already exists")


# ----------------------------------------
# Driver field rules
# ----------------------------------------

def format_license(value: str) -> str:
    """Keep 12 digits and group them XXXX-XXX-XXXXX"""
    raw = re.sub(r"\D", "", value or "")[:LICENSE_DIGITS]
    return "-".join(part for part in (raw[:4], raw[4:7], raw[7:12]) if part)


def extract_phone_suffix(value: str) -> str:
    """
    Digits that identify a mobile number regardless of how it was typed.

    '+63 917 123 4567', '0917-123-4567' and '9171234567' all give
    '171234567'. Numbers that don't look like a mobile number fall back
    to their last nine digits.
    """
    digits = re.sub(r"\D", "", value or "")
    rest = digits
    if digits.startswith("63"):
        rest = digits[2:]
    elif digits.startswith("0"):
        rest = digits[1:]
    if rest.startswith("9"):
        return rest[1:1 + PHONE_SUFFIX_DIGITS]
    return rest[-PHONE_SUFFIX_DIGITS:]


def format_phone(value: str) -> str:
    suffix = extract_phone_suffix(value)
    groups = [g for g in (suffix[:2], suffix[2:5], suffix[5:9]) if g]
    return "-".join(["+63-9"] + (["-".join(groups)] if groups else []))


def validate_driver(driver: DriverRecord) -> None:
    if not driver.name.strip():
        raise ValidationError("Please enter the driver's name.")
    if len(re.sub(r"\D", "", driver.license_number or "")) != LICENSE_DIGITS:
        raise ValidationError("Please enter a valid 12-digit license number.")
    if not re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", driver.email or ""):
        raise ValidationError("Please enter a valid email address.")
    if driver.phone is not None and len(extract_phone_suffix(driver.phone)) != PHONE_SUFFIX_DIGITS:
        raise ValidationError("Please enter a complete phone number.")
    if driver.assigned_vehicle and driver.status in (DriverStatus.OFF_DUTY, DriverStatus.INACTIVE):
        raise ValidationError("Cannot set driver to Off Duty or Inactive while a vehicle is assigned.")


def ensure_unique_driver(driver: DriverRecord, drivers: Iterable[DriverRecord]) -> None:
    license_number = format_license(driver.license_number)
    email = (driver.email or "").lower()
    suffix = extract_phone_suffix(driver.phone) if driver.phone else None
    for other in drivers:
        if other.id == driver.id:
            continue
        if format_license(other.license_number) == license_number:
            raise ConflictError("A driver with this license number already exists.")
        if (other.email or "").lower() == email:
            raise ConflictError("A driver with this email already exists.")
        if suffix and other.phone and extract_phone_suffix(other.phone) == suffix:
            raise ConflictError("A driver with this phone number already exists.")


def ensure_unique_license(license_number: str, drivers: Iterable[DriverRecord], exclude_id: Optional[str] = None) -> None:
    formatted = format_license(license_number)
    if any(d.id != exclude_id and format_license(d.license_number) == formatted for d in drivers):
        raise ConflictError("A driver with this license number already exists.")
