import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from fleet_admin.store.events import EventBus

logger = logging.getLogger(__name__)

TRUCKS = "trucks"
DRIVERS = "drivers"
TRIPS = "trips"
NOTIFICATIONS = "notifications"
TRIP_HISTORY = "trip_history"
DRIVER_TRIP_HISTORY = "driver_trip_history"

SEQUENCES_FILE = "_sequences.json"

R = TypeVar("R")


class LocalStore:
    """
    Named collections of JSON arrays, one file per collection.

    This is the client's store of record: every read goes to disk so callers
    always see the latest persisted state, and every write replaces the
    whole file atomically and then announces the collection on the bus.
    Concurrent writers from other processes race; the last write wins.
    """

    def __init__(self, base_dir, bus: Optional[EventBus] = None):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.bus = bus or EventBus()

    def path(self, collection: str) -> Path:
        return self.base_dir / f"{collection}.json"

    # ----------------------------------------
    # Raw collections
    # ----------------------------------------

    def load(self, collection: str) -> List[dict]:
        path = self.path(collection)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable collection %s, treating as empty: %s", collection, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Collection %s is not a JSON array, treating as empty", collection)
            return []
        return data

    def save(self, collection: str, items: Iterable[dict]) -> None:
        self._write_json(self.path(collection), list(items))
        self.bus.publish(collection)

    def _write_json(self, path: Path, data) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, default=str)
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    # ----------------------------------------
    # Single items
    # ----------------------------------------

    def get(self, collection: str, item_id: str) -> Optional[dict]:
        for item in self.load(collection):
            if str(item.get("id")) == str(item_id):
                return item
        return None

    def upsert(self, collection: str, item: dict) -> dict:
        """Replace the item with the same id, or put a new one first"""
        items = self.load(collection)
        for index, existing in enumerate(items):
            if str(existing.get("id")) == str(item.get("id")):
                items[index] = item
                break
        else:
            items.insert(0, item)
        self.save(collection, items)
        return item

    def update(self, collection: str, item_id: str, changes: dict) -> Optional[dict]:
        """Merge ``changes`` into the latest persisted copy of the item"""
        items = self.load(collection)
        for index, existing in enumerate(items):
            if str(existing.get("id")) == str(item_id):
                merged = {**existing, **changes}
                items[index] = merged
                self.save(collection, items)
                return merged
        return None

    def remove(self, collection: str, item_id: str) -> bool:
        items = self.load(collection)
        kept = [item for item in items if str(item.get("id")) != str(item_id)]
        if len(kept) == len(items):
            return False
        self.save(collection, kept)
        return True

    def append(self, collection: str, item: dict) -> dict:
        items = self.load(collection)
        items.append(item)
        self.save(collection, items)
        return item

    # ----------------------------------------
    # Typed access
    # ----------------------------------------

    def records(self, collection: str, model: Type[R]) -> List[R]:
        """Load a collection as pydantic records, skipping entries that don't parse"""
        records = []
        for raw in self.load(collection):
            try:
                records.append(model.model_validate(raw))
            except PydanticValidationError as exc:
                logger.warning("Skipping malformed %s entry %r: %s", collection, raw.get("id"), exc)
        return records

    def record(self, collection: str, model: Type[R], item_id: str) -> Optional[R]:
        raw = self.get(collection, item_id)
        if raw is None:
            return None
        try:
            return model.model_validate(raw)
        except PydanticValidationError as exc:
            logger.warning("Ignoring malformed %s entry %r: %s", collection, item_id, exc)
            return None

    # ----------------------------------------
    # Id sequences (T-001, D-001, ...)
    # ----------------------------------------

    def next_sequence(self, name: str, floor: int = 0) -> int:
        path = self.base_dir / SEQUENCES_FILE
        sequences = {}
        if path.exists():
            try:
                sequences = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                sequences = {}
        value = max(int(sequences.get(name, 0)), floor) + 1
        sequences[name] = value
        self._write_json(path, sequences)
        return value
