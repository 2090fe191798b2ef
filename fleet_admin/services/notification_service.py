import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fleet_admin.store.local_store import LocalStore, NOTIFICATIONS
from fleet_admin.store.remote_sync import RemoteSync

logger = logging.getLogger(__name__)


class Notifier:
    """
    Fire-and-forget notification log.

    Notifications are appended to the local ``notifications`` collection and
    mirrored to ``/api/notifications``. Nothing here raises: a notification
    that cannot be stored is logged and dropped.
    """

    def __init__(self, store: LocalStore, sync: Optional[RemoteSync] = None):
        self.store = store
        self.sync = sync

    def notify(
        self,
        title: str,
        message: str,
        type: str = "info",
        url: Optional[str] = None,
        user_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> Optional[dict]:
        now = datetime.now(timezone.utc).isoformat()
        payload = dict(data or {})
        if url:
            payload["url"] = url

        entry = {
            "id": f"N-{uuid.uuid4().hex[:12]}",
            "userId": user_id,
            "type": type,
            "title": title,
            "body": message,
            "data": payload,
            "sentAt": now,
            "readAt": None,
        }

        try:
            self.store.append(NOTIFICATIONS, entry)
        except OSError as exc:
            logger.warning("Could not store notification %r: %s", title, exc)
            return None

        if self.sync is not None:
            self.sync.create("notifications", {
                "id": entry["id"],
                "user_id": user_id,
                "type": type,
                "title": title,
                "body": message,
                "data": payload,
                "sent_at": now,
            })

        logger.info("Notification: %s - %s", title, message)
        return entry
