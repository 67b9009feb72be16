"""Property-name restrictions resolved against an entity's mapper.

Restrictions name properties by string, the same way callers address
``find_by("name", ...)``. Each name is looked up in the mapper attribute
table of the entity class when the statement is built, so an unknown name
fails before any SQL is sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Collection, Union

from sqlalchemy import inspect
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement

from .errors import MalformedQueryError


def resolve_property(entity_class: type, property_name: str) -> InstrumentedAttribute:
    mapper = inspect(entity_class)
    prop = mapper.attrs.get(property_name)
    if prop is None:
        raise MalformedQueryError(
            f"{entity_class.__name__} has no property '{property_name}'"
        )
    return getattr(entity_class, prop.key)


_OPERATORS: dict[str, Callable[[InstrumentedAttribute, Any], ColumnElement[bool]]] = {
    "eq": lambda attr, value: attr.is_(None) if value is None else attr == value,
    "ne": lambda attr, value: attr.is_not(None) if value is None else attr != value,
    "lt": lambda attr, value: attr < value,
    "le": lambda attr, value: attr <= value,
    "gt": lambda attr, value: attr > value,
    "ge": lambda attr, value: attr >= value,
    "like": lambda attr, value: attr.like(value),
    "ilike": lambda attr, value: attr.ilike(value),
    "in": lambda attr, value: attr.in_(list(value)),
    "is_null": lambda attr, _value: attr.is_(None),
    "is_not_null": lambda attr, _value: attr.is_not(None),
}


@dataclass(frozen=True, slots=True)
class Restriction:
    property_name: str
    operator: str
    value: Any = None

    def resolve(self, entity_class: type) -> ColumnElement[bool]:
        attr = resolve_property(entity_class, self.property_name)
        return _OPERATORS[self.operator](attr, self.value)


@dataclass(frozen=True, slots=True)
class Order:
    property_name: str
    ascending: bool = True

    def resolve(self, entity_class: type):
        attr = resolve_property(entity_class, self.property_name)
        return attr.asc() if self.ascending else attr.desc()


Criterion = Union[Restriction, ColumnElement[bool]]


def resolve_criterion(entity_class: type, criterion: Criterion) -> ColumnElement[bool]:
    if isinstance(criterion, Restriction):
        return criterion.resolve(entity_class)
    if isinstance(criterion, ColumnElement):
        return criterion
    raise MalformedQueryError(
        f"Unsupported criterion {criterion!r} for {entity_class.__name__}"
    )


def eq(property_name: str, value: Any) -> Restriction:
    return Restriction(property_name, "eq", value)


def ne(property_name: str, value: Any) -> Restriction:
    return Restriction(property_name, "ne", value)


def lt(property_name: str, value: Any) -> Restriction:
    return Restriction(property_name, "lt", value)


def le(property_name: str, value: Any) -> Restriction:
    return Restriction(property_name, "le", value)


def gt(property_name: str, value: Any) -> Restriction:
    return Restriction(property_name, "gt", value)


def ge(property_name: str, value: Any) -> Restriction:
    return Restriction(property_name, "ge", value)


def like(property_name: str, pattern: str) -> Restriction:
    return Restriction(property_name, "like", pattern)


def ilike(property_name: str, pattern: str) -> Restriction:
    return Restriction(property_name, "ilike", pattern)


def in_(property_name: str, values: Collection[Any]) -> Restriction:
    return Restriction(property_name, "in", tuple(values))


def is_null(property_name: str) -> Restriction:
    return Restriction(property_name, "is_null")


def is_not_null(property_name: str) -> Restriction:
    return Restriction(property_name, "is_not_null")


def asc(property_name: str) -> Order:
    return Order(property_name, True)


def desc(property_name: str) -> Order:
    return Order(property_name, False)


__all__ = [
    "Criterion",
    "Order",
    "Restriction",
    "asc",
    "desc",
    "eq",
    "ge",
    "gt",
    "ilike",
    "in_",
    "is_not_null",
    "is_null",
    "le",
    "like",
    "lt",
    "ne",
    "resolve_criterion",
    "resolve_property",
]
