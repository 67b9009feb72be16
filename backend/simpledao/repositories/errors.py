from __future__ import annotations


class RepositoryError(Exception):
    """Base class for errors surfaced by repository operations."""

    def __init__(self, message: str, code: int = 15000) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class EntityNotFoundError(RepositoryError):
    def __init__(self, message: str, code: int = 15004) -> None:
        super().__init__(message, code)


class ValidationError(RepositoryError, ValueError):
    def __init__(self, message: str, code: int = 15001) -> None:
        super().__init__(message, code)


class MalformedQueryError(RepositoryError):
    def __init__(self, message: str, code: int = 15002) -> None:
        super().__init__(message, code)


class UniquenessViolationError(RepositoryError):
    def __init__(self, message: str, code: int = 15009) -> None:
        super().__init__(message, code)


class PersistenceError(RepositoryError):
    """Raised when the session fails to flush a save or delete."""

    def __init__(self, message: str, code: int = 15010) -> None:
        super().__init__(message, code)


def not_none(value: object, message: str) -> None:
    if value is None:
        raise ValidationError(message)


def has_text(value: str | None, message: str) -> None:
    if value is None or not str(value).strip():
        raise ValidationError(message)


__all__ = [
    "EntityNotFoundError",
    "MalformedQueryError",
    "PersistenceError",
    "RepositoryError",
    "UniquenessViolationError",
    "ValidationError",
    "has_text",
    "not_none",
]
