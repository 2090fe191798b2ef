from sqlalchemy.orm import Session

from fleet_admin.models.trip_model import Trip, TripHistory, DriverTripHistory
from fleet_admin.routes.crud import build_crud_router, record_notification
from fleet_admin.schemas.trip import (
    TripCreate,
    TripRead,
    TripUpdate,
    TripHistoryCreate,
    TripHistoryRead,
    TripHistoryUpdate,
    DriverTripHistoryCreate,
    DriverTripHistoryRead,
    DriverTripHistoryUpdate,
)


def log_trip_change(db: Session, row, action: str) -> None:
    destination = row.destination or "destination"
    record_notification(
        db,
        user_id=row.driver_id,
        type="trip",
        title=f"Trip {action}",
        body=f"Trip {row.id} to {destination} was {action}.",
        data={"trip": TripRead.model_validate(row).model_dump(mode="json")},
    )


router = build_crud_router(
    path="trips",
    tag="Trips",
    model=Trip,
    create_schema=TripCreate,
    update_schema=TripUpdate,
    read_schema=TripRead,
    id_prefix="TRIP",
    after_write=log_trip_change,
)

history_router = build_crud_router(
    path="trip-history",
    tag="Trip History",
    model=TripHistory,
    create_schema=TripHistoryCreate,
    update_schema=TripHistoryUpdate,
    read_schema=TripHistoryRead,
    id_prefix="TH",
)

driver_history_router = build_crud_router(
    path="driver-trip-history",
    tag="Driver Trip History",
    model=DriverTripHistory,
    create_schema=DriverTripHistoryCreate,
    update_schema=DriverTripHistoryUpdate,
    read_schema=DriverTripHistoryRead,
    id_prefix="DTH",
)
