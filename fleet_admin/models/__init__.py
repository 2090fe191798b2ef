from .truck_model import Truck, TruckStatus
from .driver_model import Driver, DriverStatus, DriverDocument
from .trip_model import Trip, TripStatus, TripHistory, DriverTripHistory, TERMINAL_TRIP_STATUSES
from .schedule_model import ScheduledMaintenance, TruckSchedule, DriverSchedule
from .notification_model import Notification
from .destination_model import Destination

__all__ = [
    "Truck",
    "TruckStatus",
    "Driver",
    "DriverStatus",
    "DriverDocument",
    "Trip",
    "TripStatus",
    "TripHistory",
    "DriverTripHistory",
    "TERMINAL_TRIP_STATUSES",
    "ScheduledMaintenance",
    "TruckSchedule",
    "DriverSchedule",
    "Notification",
    "Destination",
]
