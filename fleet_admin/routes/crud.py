import enum
import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleet_admin.database import get_db
from fleet_admin.models.notification_model import Notification

logger = logging.getLogger(__name__)

# (db, data, item_id) -> None, raises HTTPException to reject the write
WriteCheck = Callable[[Session, dict, Optional[str]], None]
# (db, row, action) -> None, runs after the row is committed
AfterWrite = Callable[[Session, object, str], None]


def _column_value(value):
    if isinstance(value, enum.Enum):
        return value.value
    return value


def record_notification(
    db: Session,
    user_id: Optional[str],
    type: str,
    title: str,
    body: str,
    data: Optional[dict] = None
) -> None:
    """Append a notification row; never fails the request that triggered it"""
    try:
        db.add(Notification(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            data=data,
            sent_at=datetime.utcnow(),
        ))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Could not record notification %r: %s", title, exc)


def build_crud_router(
    *,
    path: str,
    tag: str,
    model,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    read_schema: Type[BaseModel],
    id_prefix: Optional[str] = None,
    check: Optional[WriteCheck] = None,
    after_write: Optional[AfterWrite] = None
) -> APIRouter:
    """
    Standard REST resource under ``/api/<path>``.

    POST creates or, when the body carries the id of an existing row,
    updates it. PUT is a partial update and 404s on an unknown id. DELETE of
    an unknown id is a no-op returning 204.
    """
    router = APIRouter(prefix=f"/api/{path}", tags=[tag])
    order_column = getattr(model, "created_at", None)
    if order_column is None:
        order_column = model.id

    def new_id() -> str:
        if id_prefix:
            return f"{id_prefix}-{uuid.uuid4().hex[:12]}"
        return str(uuid.uuid4())

    def notify(db: Session, row, action: str) -> None:
        if after_write is None:
            return
        try:
            after_write(db, row, action)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("%s %s hook failed: %s", tag, action, exc)

    # ----------------------------------------
    # List / Get
    # ----------------------------------------

    @router.get("", response_model=List[read_schema])
    def list_items(db: Session = Depends(get_db)):
        return db.query(model).order_by(order_column.desc()).all()

    @router.get("/{item_id}", response_model=read_schema)
    def get_item(item_id: str, db: Session = Depends(get_db)):
        row = db.get(model, item_id)
        if not row:
            raise HTTPException(status_code=404, detail=f"{tag} not found")
        return row

    # ----------------------------------------
    # Create or update
    # ----------------------------------------

    @router.post("", response_model=read_schema, status_code=201)
    def create_item(payload: create_schema, db: Session = Depends(get_db)):
        data = {
            key: _column_value(value)
            for key, value in payload.model_dump().items()
            if value is not None
        }
        item_id = data.get("id") or new_id()
        data["id"] = item_id

        row = db.get(model, item_id)
        if check is not None:
            check(db, data, item_id)

        if row:
            for field, value in data.items():
                setattr(row, field, value)
            action = "updated"
        else:
            row = model(**data)
            db.add(row)
            action = "created"

        db.commit()
        db.refresh(row)
        logger.info("%s %s %s", tag, item_id, action)

        notify(db, row, action)
        return row

    # ----------------------------------------
    # Partial update
    # ----------------------------------------

    @router.put("/{item_id}", response_model=read_schema)
    def update_item(item_id: str, payload: update_schema, db: Session = Depends(get_db)):
        row = db.get(model, item_id)
        if not row:
            raise HTTPException(status_code=404, detail=f"{tag} not found")

        data = {key: _column_value(value) for key, value in payload.model_dump(exclude_unset=True).items()}
        if check is not None:
            check(db, data, item_id)

        for field, value in data.items():
            setattr(row, field, value)

        db.commit()
        db.refresh(row)

        notify(db, row, "updated")
        return row

    # ----------------------------------------
    # Delete
    # ----------------------------------------

    @router.delete("/{item_id}", status_code=204)
    def delete_item(item_id: str, db: Session = Depends(get_db)):
        row = db.get(model, item_id)
        if row:
            snapshot = read_schema.model_validate(row)
            db.delete(row)
            db.commit()
            logger.info("%s %s deleted", tag, item_id)
            notify(db, snapshot, "deleted")
        return Response(status_code=204)

    return router
