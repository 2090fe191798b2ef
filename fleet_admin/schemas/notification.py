from __future__ import annotations
from datetime import datetime
from typing import Optional, Any, Dict

from pydantic import BaseModel


class NotificationCreate(BaseModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class NotificationUpdate(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    read_at: Optional[datetime] = None


class NotificationRead(NotificationCreate):
    id: str

    model_config = {"from_attributes": True}
