# rota_api/repository.py
"""
Data-access handle passed into every engine service.

Wraps one request-scoped SQLAlchemy session. Interval models (Shift,
LeaveRequest) expose ``start_at``/``end_at`` columns, which is all
``overlapping`` needs. Storage failures surface as ``StorageError``;
optimistic-lock and constraint failures at commit surface as ``Conflict``.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from rota_api.common.errors import Conflict, StorageError
from rota_api.extensions import db
from rota_api.models.employee import Employee

log = logging.getLogger(__name__)


class Repository:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # ---------- reads ----------
    def get(self, model: Type[Any], pk: Optional[int]):
        if pk is None:
            return None
        try:
            return self.session.get(model, pk)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load {model.__name__} {pk}") from e

    def exists(self, model: Type[Any], *criteria) -> bool:
        try:
            return self.session.scalar(select(model.id).where(*criteria).limit(1)) is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Could not query {model.__name__}") from e

    def find(self, model: Type[Any], *criteria, order_by: Iterable = ()) -> List[Any]:
        stmt = select(model).where(*criteria).order_by(*order_by)
        try:
            return list(self.session.scalars(stmt))
        except SQLAlchemyError as e:
            raise StorageError(f"Could not query {model.__name__}") from e

    def overlapping(self, model: Type[Any], start: datetime, end: datetime, *criteria,
                    order_by: Iterable = ()) -> List[Any]:
        """Rows whose [start_at, end_at) intersects [start, end)."""
        return self.find(model, model.start_at < end, model.end_at > start, *criteria, order_by=order_by)

    def scalars(self, stmt) -> List[Any]:
        try:
            return list(self.session.scalars(stmt))
        except SQLAlchemyError as e:
            raise StorageError("Query failed") from e

    def count(self, stmt) -> int:
        try:
            return int(self.session.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise StorageError("Count query failed") from e

    # ---------- common lookups ----------
    def by_ids(self, model: Type[Any], ids) -> dict:
        ids = {i for i in ids if i is not None}
        if not ids:
            return {}
        return {row.id: row for row in self.find(model, model.id.in_(ids))}

    def team_member_ids(self, team_id: int):
        """Sub-select of employee ids in a team, for filtering interval rows by team."""
        return select(Employee.id).where(Employee.team_id == team_id)

    # ---------- writes ----------
    def add(self, obj):
        self.session.add(obj)
        return obj

    def remove(self, obj):
        self.session.delete(obj)

    def flush(self):
        try:
            self.session.flush()
        except (StaleDataError, IntegrityError) as e:
            self.session.rollback()
            raise Conflict("The record was modified by another request.") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError("Could not write changes") from e

    def commit(self):
        try:
            self.session.commit()
        except (StaleDataError, IntegrityError) as e:
            self.session.rollback()
            log.warning("commit conflict: %s", e)
            raise Conflict("The record was modified by another request.") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError("Could not save changes") from e

    def rollback(self):
        self.session.rollback()
