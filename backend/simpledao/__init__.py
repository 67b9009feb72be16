"""Generic SQLAlchemy repository base with CRUD and ad-hoc query helpers."""

from .repositories import SimpleRepository

__version__ = "0.1.0"

__all__ = ["SimpleRepository", "__version__"]
