from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Local collections mix "...Z" strings and naive timestamps; compare them all in UTC
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class LocalRecord(BaseModel):
    """
    A record as kept in the local JSON collections.

    Field names are snake_case in Python, camelCase on disk
    (``plateNumber``, ``assignedVehicle``...). Unknown keys written by other
    clients are kept so a read-modify-write never drops them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def merged(self, changes: dict):
        """Copy of the record with ``changes`` applied, revalidated.

        ``changes`` may use either spelling (``plate_number`` or ``plateNumber``).
        """
        by_alias = {
            (info.alias or name): name for name, info in type(self).model_fields.items()
        }
        data = self.model_dump()
        for key, value in changes.items():
            data[by_alias.get(key, key)] = value
        return type(self).model_validate(data)

    def to_local(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_api(self, exclude_none: bool = False) -> dict:
        """Snake_case payload for the REST backend, without local-only keys"""
        return self.model_dump(
            mode="json",
            include=set(type(self).model_fields),
            exclude_none=exclude_none,
        )
