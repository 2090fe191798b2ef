from fleet_admin.models.schedule_model import ScheduledMaintenance, TruckSchedule, DriverSchedule
from fleet_admin.routes.crud import build_crud_router
from fleet_admin.schemas.schedule import (
    ScheduledMaintenanceCreate,
    ScheduledMaintenanceRead,
    ScheduledMaintenanceUpdate,
    TruckScheduleCreate,
    TruckScheduleRead,
    TruckScheduleUpdate,
    DriverScheduleCreate,
    DriverScheduleRead,
    DriverScheduleUpdate,
)

maintenance_router = build_crud_router(
    path="scheduled-maintenance",
    tag="Scheduled Maintenance",
    model=ScheduledMaintenance,
    create_schema=ScheduledMaintenanceCreate,
    update_schema=ScheduledMaintenanceUpdate,
    read_schema=ScheduledMaintenanceRead,
    id_prefix="MAINT",
)

truck_schedules_router = build_crud_router(
    path="truck-schedules",
    tag="Truck Schedules",
    model=TruckSchedule,
    create_schema=TruckScheduleCreate,
    update_schema=TruckScheduleUpdate,
    read_schema=TruckScheduleRead,
    id_prefix="TS",
)

driver_schedules_router = build_crud_router(
    path="driver-schedules",
    tag="Driver Schedules",
    model=DriverSchedule,
    create_schema=DriverScheduleCreate,
    update_schema=DriverScheduleUpdate,
    read_schema=DriverScheduleRead,
    id_prefix="DS",
)
