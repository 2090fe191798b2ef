from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleet_admin.database import get_db
from fleet_admin.models.truck_model import Truck
from fleet_admin.services.tracking_service import simulated_locations

router = APIRouter(
    prefix="/api",
    tags=["Tracking"]
)


# ----------------------------------------
# Simulated truck positions
# ----------------------------------------

@router.get("/locations")
def locations(db: Session = Depends(get_db)):
    trucks = db.query(Truck).order_by(Truck.id).all()
    return simulated_locations(trucks)
