from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet_admin.models.truck_model import Truck
from fleet_admin.routes.crud import build_crud_router
from fleet_admin.schemas.truck import TruckCreate, TruckRead, TruckUpdate


def ensure_unique_plate(db: Session, data: dict, item_id: Optional[str]) -> None:
    plate = data.get("plate_number")
    if not plate:
        return
    clash = db.query(Truck).filter(
        func.upper(Truck.plate_number) == plate.upper(),
        Truck.id != item_id
    ).first()
    if clash:
        raise HTTPException(status_code=409, detail="A truck with this plate number already exists")


router = build_crud_router(
    path="trucks",
    tag="Trucks",
    model=Truck,
    create_schema=TruckCreate,
    update_schema=TruckUpdate,
    read_schema=TruckRead,
    id_prefix="T",
    check=ensure_unique_plate,
)
