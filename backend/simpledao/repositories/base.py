from __future__ import annotations

from typing import Any, Collection, Generic, Iterable, TypeVar

from sqlalchemy import Executable, func, inspect, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpledao.core.logging import get_logger

from .criterion import Criterion, eq, in_, resolve_property
from .errors import (
    EntityNotFoundError,
    MalformedQueryError,
    PersistenceError,
    has_text,
    not_none,
)
from .query import BoundQuery, Criteria, bind_parameters, is_dml, to_statement

T = TypeVar("T")
ID = TypeVar("ID")


class SimpleRepository(Generic[T, ID]):
    """Generic CRUD and query helpers for one mapped entity class.

    The session is borrowed: the repository flushes it but never commits,
    rolls back or closes it. Wrap calls in ``session_scope()`` or any other
    transactional context owned by the caller.

    Subclasses name their entity explicitly::

        class UserRepository(SimpleRepository[User, int]):
            entity_class = User

    or pass it to the constructor: ``SimpleRepository(session, User)``.
    """

    entity_class: type[T]

    def __init__(
        self, session: Session, entity_class: type[T] | None = None
    ) -> None:
        if entity_class is not None:
            self.entity_class = entity_class
        if getattr(self, "entity_class", None) is None:
            raise TypeError(
                f"{type(self).__name__} needs an entity_class attribute or argument"
            )
        self.session = session
        self.logger = get_logger(f"simpledao.repositories.{type(self).__name__}")

    @property
    def entity_name(self) -> str:
        return self.entity_class.__name__

    # --- mutations -------------------------------------------------------

    def save(self, entity: T) -> T:
        """Add a new or detached entity and flush so its identifier is assigned."""

        not_none(entity, "entity must not be None")
        try:
            self.session.add(entity)
            self.session.flush()
        except SQLAlchemyError as exc:
            self.logger.error("save %s failed: %s", self.entity_name, exc)
            raise PersistenceError(
                f"Failed to save {self.entity_name}: {exc}"
            ) from exc
        self.logger.debug("save entity: %r", entity)
        return entity

    def delete(self, entity: T) -> None:
        not_none(entity, "entity must not be None")
        state = inspect(entity)
        if not (state.persistent or state.detached) or not self._row_exists(state):
            raise EntityNotFoundError(
                f"{self.entity_name} {entity!r} is not persisted"
            )
        try:
            self.session.delete(entity)
            self.session.flush()
        except SQLAlchemyError as exc:
            self.logger.error("delete %s failed: %s", self.entity_name, exc)
            raise PersistenceError(
                f"Failed to delete {self.entity_name}: {exc}"
            ) from exc
        self.logger.debug("delete entity: %r", entity)

    def _row_exists(self, state) -> bool:
        # a flush that deletes zero rows only warns, so check the key first
        mapper = state.mapper
        key_match = [
            column == value
            for column, value in zip(mapper.primary_key, state.identity)
        ]
        count = self.session.scalar(
            select(func.count()).select_from(mapper.local_table).where(*key_match)
        )
        return bool(count)

    def delete_by_id(self, id: ID) -> None:
        not_none(id, "id must not be None")
        self.delete(self.get(id))
        self.logger.debug("delete entity %s, id is %s", self.entity_name, id)

    def flush(self) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            self.logger.error("flush failed: %s", exc)
            raise PersistenceError(f"Failed to flush session: {exc}") from exc

    # --- lookups ---------------------------------------------------------

    def get(self, id: ID) -> T:
        not_none(id, "id must not be None")
        entity = self.session.get(self.entity_class, id)
        if entity is None:
            raise EntityNotFoundError(f"{self.entity_name} {id!r} not found")
        return entity

    def get_many(self, ids: Collection[ID]) -> list[T]:
        not_none(ids, "ids must not be None")
        if not ids:
            return []
        return self.find_by_criteria(in_(self.get_id_name(), ids))

    def get_all(
        self, order_by: str | None = None, ascending: bool = True
    ) -> list[T]:
        criteria = self.create_criteria()
        if order_by is not None:
            criteria.order_by(order_by, ascending)
        return criteria.list()

    def find_by(self, property_name: str, value: Any) -> list[T]:
        has_text(property_name, "property_name must not be blank")
        return self.find_by_criteria(eq(property_name, value))

    def find_unique_by(self, property_name: str, value: Any) -> T | None:
        has_text(property_name, "property_name must not be blank")
        return self.create_criteria(eq(property_name, value)).unique_result()

    def find_by_criteria(self, *criterions: Criterion) -> list[T]:
        return self.create_criteria(*criterions).list()

    def find_unique_by_criteria(self, *criterions: Criterion) -> T | None:
        return self.create_criteria(*criterions).unique_result()

    def is_property_unique(
        self, property_name: str, new_value: Any, old_value: Any
    ) -> bool:
        """Whether ``new_value`` is free for ``property_name``.

        When editing, an unchanged value (``new_value == old_value``) is
        always considered unique.
        """

        if new_value is None or new_value == old_value:
            return True
        attr = resolve_property(self.entity_class, property_name)
        count = self.session.scalar(
            select(func.count())
            .select_from(self.entity_class)
            .where(attr == new_value)
        )
        return not count

    # --- ad-hoc queries --------------------------------------------------

    def find(self, query: str | Executable, *values: Any) -> list[Any]:
        """Run a query and return its rows.

        Positional values bind ``:1``, ``:2``...; a single mapping binds by name.
        """

        return self.create_query(query, *values).list()

    def find_unique(self, query: str | Executable, *values: Any) -> Any | None:
        return self.create_query(query, *values).unique_result()

    def batch_execute(self, query: str | Executable, *values: Any) -> int:
        """Run an UPDATE/DELETE/INSERT statement and return the affected row count."""

        statement = to_statement(query)
        if not is_dml(query):
            raise MalformedQueryError(
                "batch_execute only accepts UPDATE, DELETE or INSERT"
            )
        query_obj = BoundQuery(self.session, statement, bind_parameters(values))
        count = query_obj.execute_update()
        self.logger.debug(
            "batch execute on %s affected %s rows", self.entity_name, count
        )
        return count

    def create_query(self, query: str | Executable, *values: Any) -> BoundQuery:
        return BoundQuery(self.session, to_statement(query), bind_parameters(values))

    def create_entity_query(self, sql: str, *values: Any) -> BoundQuery:
        """Query whose raw SQL rows are loaded as ``entity_class`` instances."""

        has_text(sql, "query text must not be blank")
        statement = select(self.entity_class).from_statement(text(sql))
        return BoundQuery(self.session, statement, bind_parameters(values))

    def create_criteria(
        self, *criterions: Criterion | Iterable[Criterion]
    ) -> Criteria[T]:
        if len(criterions) == 1 and isinstance(criterions[0], (list, tuple)):
            criterions = tuple(criterions[0])
        return Criteria(self.session, self.entity_class, criterions)

    @staticmethod
    def distinct(query: BoundQuery | Criteria[Any]) -> BoundQuery | Criteria[Any]:
        """Collapse duplicate root entities produced by joins."""

        return query.distinct()

    # --- metadata --------------------------------------------------------

    def get_id_name(self) -> str:
        mapper = inspect(self.entity_class)
        if len(mapper.primary_key) != 1:
            raise MalformedQueryError(
                f"{self.entity_name} has a composite primary key"
            )
        return mapper.get_property_by_column(mapper.primary_key[0]).key

    def initialize(self, entity: T, *attributes: str) -> T:
        """Load attributes still unloaded on ``entity``, lazy relationships included."""

        not_none(entity, "entity must not be None")
        state = inspect(entity)
        if not state.persistent:
            raise EntityNotFoundError(
                f"{self.entity_name} {entity!r} is not persistent"
            )
        names = list(attributes) or sorted(state.unloaded)
        for name in names:
            resolve_property(self.entity_class, name)
            getattr(entity, name)
        return entity


__all__ = ["SimpleRepository"]
