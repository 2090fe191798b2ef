from .events import EventBus
from .local_store import LocalStore
from .remote_sync import RemoteSync

__all__ = ["EventBus", "LocalStore", "RemoteSync"]
