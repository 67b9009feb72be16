from .base import SimpleRepository
from .errors import (
    EntityNotFoundError,
    MalformedQueryError,
    PersistenceError,
    RepositoryError,
    UniquenessViolationError,
    ValidationError,
)
from .query import BoundQuery, Criteria

__all__ = [
    "BoundQuery",
    "Criteria",
    "EntityNotFoundError",
    "MalformedQueryError",
    "PersistenceError",
    "RepositoryError",
    "SimpleRepository",
    "UniquenessViolationError",
    "ValidationError",
]
