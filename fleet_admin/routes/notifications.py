from fleet_admin.models.notification_model import Notification
from fleet_admin.routes.crud import build_crud_router
from fleet_admin.schemas.notification import NotificationCreate, NotificationRead, NotificationUpdate

router = build_crud_router(
    path="notifications",
    tag="Notifications",
    model=Notification,
    create_schema=NotificationCreate,
    update_schema=NotificationUpdate,
    read_schema=NotificationRead,
)
