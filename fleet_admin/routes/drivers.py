from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet_admin.models.driver_model import Driver, DriverDocument
from fleet_admin.routes.crud import build_crud_router, record_notification
from fleet_admin.schemas.driver import (
    DriverCreate,
    DriverRead,
    DriverUpdate,
    DriverDocumentCreate,
    DriverDocumentRead,
    DriverDocumentUpdate,
)
from fleet_admin.services.eligibility_service import extract_phone_suffix, format_license


# ----------------------------------------
# Uniqueness
# ----------------------------------------

def ensure_unique_driver(db: Session, data: dict, item_id: Optional[str]) -> None:
    others = db.query(Driver).filter(Driver.id != item_id)

    license_number = data.get("license_number")
    if license_number:
        formatted = format_license(license_number)
        if any(format_license(d.license_number) == formatted for d in others.all()):
            raise HTTPException(status_code=409, detail="A driver with this license number already exists.")

    email = data.get("email")
    if email and others.filter(func.lower(Driver.email) == str(email).lower()).first():
        raise HTTPException(status_code=409, detail="A driver with this email already exists.")

    phone = data.get("phone")
    if phone:
        suffix = extract_phone_suffix(phone)
        if suffix and any(d.phone and extract_phone_suffix(d.phone) == suffix for d in others.all()):
            raise HTTPException(status_code=409, detail="A driver with this phone number already exists.")


# ----------------------------------------
# Notification log
# ----------------------------------------

def log_driver_change(db: Session, row, action: str) -> None:
    if action == "deleted":
        return
    record_notification(
        db,
        user_id=row.id,
        type="driver",
        title=f"Driver {action}",
        body=f"Driver {row.name} was {action}.",
        data={"driver": DriverRead.model_validate(row).model_dump(mode="json")},
    )


router = build_crud_router(
    path="drivers",
    tag="Drivers",
    model=Driver,
    create_schema=DriverCreate,
    update_schema=DriverUpdate,
    read_schema=DriverRead,
    id_prefix="D",
    check=ensure_unique_driver,
    after_write=log_driver_change,
)

documents_router = build_crud_router(
    path="driver-documents",
    tag="Driver Documents",
    model=DriverDocument,
    create_schema=DriverDocumentCreate,
    update_schema=DriverDocumentUpdate,
    read_schema=DriverDocumentRead,
    id_prefix="DOC",
)
