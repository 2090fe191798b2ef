from fleet_admin.models.destination_model import Destination
from fleet_admin.routes.crud import build_crud_router
from fleet_admin.schemas.destination import DestinationCreate, DestinationRead, DestinationUpdate

router = build_crud_router(
    path="destinations",
    tag="Destinations",
    model=Destination,
    create_schema=DestinationCreate,
    update_schema=DestinationUpdate,
    read_schema=DestinationRead,
    id_prefix="DEST",
)
