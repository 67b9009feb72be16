from __future__ import annotations

from typing import Any, Generic, Iterable, Mapping, Sequence, TypeVar

from sqlalchemy import Executable, Select, TextClause, select, text
from sqlalchemy.engine import Result
from sqlalchemy.exc import (
    DBAPIError,
    MultipleResultsFound,
    OperationalError,
    ProgrammingError,
    StatementError,
)
from sqlalchemy.orm import Session
from sqlalchemy.sql.dml import UpdateBase

from simpledao.core.logging import get_logger
from simpledao.utils.collections import distinct_root_entities

from .criterion import Criterion, Order, resolve_criterion, resolve_property
from .errors import (
    MalformedQueryError,
    PersistenceError,
    UniquenessViolationError,
    has_text,
)

T = TypeVar("T")

_DML_KEYWORDS = frozenset({"update", "delete", "insert"})

logger = get_logger(__name__)


def bind_parameters(values: Sequence[Any]) -> dict[str, Any]:
    """Map call arguments to bind parameters.

    A single mapping is bound by name (``:cutoff``). Anything else is bound
    by position, so ``find(sql, a, b)`` fills ``:1`` and ``:2``.
    """

    if len(values) == 1 and isinstance(values[0], Mapping):
        return dict(values[0])
    return {str(index): value for index, value in enumerate(values, start=1)}


def to_statement(query: str | Executable) -> Executable:
    if isinstance(query, str):
        has_text(query, "query text must not be blank")
        return text(query)
    if isinstance(query, Executable):
        return query
    raise MalformedQueryError(f"Unsupported query object {query!r}")


def is_dml(query: str | Executable) -> bool:
    if isinstance(query, TextClause):
        query = query.text
    if isinstance(query, str):
        parts = query.split(None, 1)
        return bool(parts) and parts[0].lower() in _DML_KEYWORDS
    return isinstance(query, UpdateBase)


def _collect(result: Result[Any]) -> list[Any]:
    if len(result.keys()) == 1:
        return list(result.scalars().all())
    return list(result.all())


def _single(items: list[Any], description: str) -> Any | None:
    if not items:
        return None
    if len(items) > 1:
        raise UniquenessViolationError(
            f"{description} returned {len(items)} results, expected at most one"
        )
    return items[0]


class BoundQuery:
    """A statement plus its bind parameters, executed on a borrowed session."""

    def __init__(
        self,
        session: Session,
        statement: Executable,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        self.session = session
        self.statement = statement
        self.params = dict(params or {})
        self.distinct_root = False

    def distinct(self) -> "BoundQuery":
        self.distinct_root = True
        return self

    def _execute(self) -> Result[Any]:
        try:
            return self.session.execute(self.statement, self.params)
        except StatementError as exc:
            raise MalformedQueryError(f"Query failed: {exc.orig or exc}") from exc

    def list(self) -> list[Any]:
        items = _collect(self._execute())
        if self.distinct_root:
            items = distinct_root_entities(items)
        return items

    def unique_result(self) -> Any | None:
        return _single(self.list(), "Query")

    def execute_update(self) -> int:
        try:
            result = self.session.execute(self.statement, self.params)
        except (OperationalError, ProgrammingError) as exc:
            raise MalformedQueryError(f"Statement failed: {exc.orig}") from exc
        except DBAPIError as exc:
            logger.error("batch statement failed: %s", exc.orig)
            raise PersistenceError(f"Batch statement failed: {exc.orig}") from exc
        except StatementError as exc:
            raise MalformedQueryError(f"Statement failed: {exc.orig or exc}") from exc
        logger.debug("batch statement affected %s rows", result.rowcount)
        return result.rowcount


class Criteria(Generic[T]):
    """Composable query on one entity class built from criterions and orders."""

    def __init__(
        self,
        session: Session,
        entity_class: type[T],
        criterions: Iterable[Criterion] = (),
    ) -> None:
        self.session = session
        self.entity_class = entity_class
        self._criterions: list[Criterion] = []
        self._orders: list[Order] = []
        self._joins: list[str] = []
        self.distinct_root = False
        self.add(*criterions)

    def add(self, *criterions: Criterion) -> "Criteria[T]":
        for criterion in criterions:
            # fail fast on unknown properties
            resolve_criterion(self.entity_class, criterion)
            self._criterions.append(criterion)
        return self

    def add_order(self, order: Order) -> "Criteria[T]":
        order.resolve(self.entity_class)
        self._orders.append(order)
        return self

    def order_by(self, property_name: str, ascending: bool = True) -> "Criteria[T]":
        return self.add_order(Order(property_name, ascending))

    def join(self, relationship_name: str) -> "Criteria[T]":
        resolve_property(self.entity_class, relationship_name)
        self._joins.append(relationship_name)
        return self

    def distinct(self) -> "Criteria[T]":
        self.distinct_root = True
        return self

    def statement(self) -> Select[Any]:
        stmt = select(self.entity_class)
        for name in self._joins:
            stmt = stmt.join(resolve_property(self.entity_class, name))
        for criterion in self._criterions:
            stmt = stmt.where(resolve_criterion(self.entity_class, criterion))
        for order in self._orders:
            stmt = stmt.order_by(order.resolve(self.entity_class))
        return stmt

    def list(self) -> list[T]:
        try:
            items = list(self.session.scalars(self.statement()).all())
        except StatementError as exc:
            raise MalformedQueryError(
                f"Criteria query failed: {exc.orig or exc}"
            ) from exc
        if self.distinct_root:
            items = distinct_root_entities(items)
        return items

    def unique_result(self) -> T | None:
        try:
            return self.session.scalars(self.statement()).unique().one_or_none()
        except MultipleResultsFound as exc:
            raise UniquenessViolationError(
                f"More than one {self.entity_class.__name__} matched"
            ) from exc
        except StatementError as exc:
            raise MalformedQueryError(
                f"Criteria query failed: {exc.orig or exc}"
            ) from exc


__all__ = ["BoundQuery", "Criteria", "bind_parameters", "is_dml", "to_statement"]
