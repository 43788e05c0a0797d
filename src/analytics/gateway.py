"""
Data access gateway
Read-only counts, aggregates, group-bys and projections over CRM entities
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import DataAccessFault
from ..database.models import Activity, Contact, Deal, Lead, Task, User

logger = logging.getLogger(__name__)

Filters = Dict[str, Any]

ENTITY_MODELS = {
    "user": User,
    "contact": Contact,
    "lead": Lead,
    "deal": Deal,
    "task": Task,
    "activity": Activity,
}

AGGREGATE_FUNCTIONS = {
    "sum": func.sum,
    "avg": func.avg,
}


class DataAccessGateway(ABC):
    """Read interface consumed by the analytics services.

    Filters map a field to a value (equality) or to {operator: value} with
    operators in, not_in, lt, lte, gt, gte, ne, is_null. Implementations
    raise DataAccessFault on any failure.
    """

    @abstractmethod
    def count(self, entity_type: str, filters: Optional[Filters] = None) -> int:
        """Number of matching rows"""

    @abstractmethod
    def aggregate(self, entity_type: str, filters: Optional[Filters], operation: str, field: str) -> float:
        """sum or avg of a numeric field over matching rows (0 when nothing matches)"""

    @abstractmethod
    def group_by(self, entity_type: str, filters: Optional[Filters], dimension: str,
                 sum_field: Optional[str] = None) -> List[Dict[str, Any]]:
        """Rows of {"key", "count", "sum"} per distinct dimension value"""

    @abstractmethod
    def find_many(self, entity_type: str, filters: Optional[Filters] = None,
                  projection: Optional[Sequence[str]] = None, order_by: Optional[str] = None,
                  limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Matching rows as dicts of the projected fields (all columns by default)"""


class SqlAlchemyGateway(DataAccessGateway):
    """Gateway over the SQLAlchemy models; every read runs in its own session"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _model(self, entity_type: str):
        model = ENTITY_MODELS.get(entity_type)
        if model is None:
            raise DataAccessFault(f"Unknown entity type: {entity_type}", entity_type=entity_type)
        return model

    def _column(self, model, field: str, entity_type: str):
        if field not in model.__table__.columns:
            raise DataAccessFault(f"Unknown field '{field}' on {entity_type}", entity_type=entity_type, field=field)
        return getattr(model, field)

    def _conditions(self, model, entity_type: str, filters: Optional[Filters]) -> list:
        conditions = []
        for field, criterion in (filters or {}).items():
            column = self._column(model, field, entity_type)
            if not isinstance(criterion, dict):
                conditions.append(column.is_(None) if criterion is None else column == criterion)
                continue
            for operator, operand in criterion.items():
                if operator == "in":
                    conditions.append(column.in_(list(operand)))
                elif operator == "not_in":
                    conditions.append(column.not_in(list(operand)))
                elif operator == "lt":
                    conditions.append(column < operand)
                elif operator == "lte":
                    conditions.append(column <= operand)
                elif operator == "gt":
                    conditions.append(column > operand)
                elif operator == "gte":
                    conditions.append(column >= operand)
                elif operator == "ne":
                    conditions.append(column != operand)
                elif operator == "is_null":
                    conditions.append(column.is_(None) if operand else column.isnot(None))
                else:
                    raise DataAccessFault(
                        f"Unsupported filter operator '{operator}'",
                        entity_type=entity_type, field=field,
                    )
        return conditions

    def _run(self, entity_type: str, operation: str, query_fn: Callable[[Session], Any]) -> Any:
        session = self.session_factory()
        try:
            result = query_fn(session)
            logger.debug(f"Query {operation} on {entity_type} completed")
            return result
        except SQLAlchemyError as e:
            logger.error(f"Query {operation} on {entity_type} failed: {e}")
            raise DataAccessFault(str(e), entity_type=entity_type, operation=operation) from e
        finally:
            session.close()

    def count(self, entity_type: str, filters: Optional[Filters] = None) -> int:
        model = self._model(entity_type)
        conditions = self._conditions(model, entity_type, filters)

        def query(session: Session) -> int:
            return int(session.query(func.count(model.id)).filter(*conditions).scalar() or 0)

        return self._run(entity_type, "count", query)

    def aggregate(self, entity_type: str, filters: Optional[Filters], operation: str, field: str) -> float:
        model = self._model(entity_type)
        aggregate_fn = AGGREGATE_FUNCTIONS.get(operation)
        if aggregate_fn is None:
            raise DataAccessFault(f"Unsupported aggregate '{operation}'", entity_type=entity_type, operation=operation)
        column = self._column(model, field, entity_type)
        conditions = self._conditions(model, entity_type, filters)

        def query(session: Session) -> float:
            return float(session.query(aggregate_fn(column)).filter(*conditions).scalar() or 0)

        return self._run(entity_type, operation, query)

    def group_by(self, entity_type: str, filters: Optional[Filters], dimension: str,
                 sum_field: Optional[str] = None) -> List[Dict[str, Any]]:
        model = self._model(entity_type)
        key_column = self._column(model, dimension, entity_type)
        sum_column = self._column(model, sum_field, entity_type) if sum_field else None
        conditions = self._conditions(model, entity_type, filters)

        def query(session: Session) -> List[Dict[str, Any]]:
            columns = [key_column.label("key"), func.count(model.id).label("count")]
            if sum_column is not None:
                columns.append(func.sum(sum_column).label("sum"))
            rows = session.query(*columns).filter(*conditions).group_by(key_column).all()
            return [
                {
                    "key": row.key,
                    "count": int(row.count),
                    "sum": float(row.sum or 0) if sum_column is not None else 0.0,
                }
                for row in rows
            ]

        return self._run(entity_type, "group_by", query)

    def find_many(self, entity_type: str, filters: Optional[Filters] = None,
                  projection: Optional[Sequence[str]] = None, order_by: Optional[str] = None,
                  limit: Optional[int] = None) -> List[Dict[str, Any]]:
        model = self._model(entity_type)
        fields = list(projection) if projection else [column.name for column in model.__table__.columns]
        columns = [self._column(model, field, entity_type) for field in fields]
        conditions = self._conditions(model, entity_type, filters)

        ordering = None
        if order_by:
            descending = order_by.startswith("-")
            order_column = self._column(model, order_by.lstrip("-"), entity_type)
            ordering = order_column.desc() if descending else order_column.asc()

        def query(session: Session) -> List[Dict[str, Any]]:
            q = session.query(*columns).filter(*conditions)
            if ordering is not None:
                q = q.order_by(ordering)
            if limit is not None:
                q = q.limit(limit)
            return [dict(zip(fields, row)) for row in q.all()]

        return self._run(entity_type, "find_many", query)
