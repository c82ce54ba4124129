from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """A store read or write was rejected by the database."""


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning("%s failed: %s", operation, exc.__class__.__name__)
        raise StorageError(f"{operation} failed") from exc
