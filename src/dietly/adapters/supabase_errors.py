"""Translation of PostgREST failures into domain errors."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from postgrest.exceptions import APIError

from dietly.domain.errors import PersistenceError

UNIQUE_VIOLATION = "23505"

_logger = logging.getLogger(__name__)


def is_unique_violation(exc: APIError) -> bool:
    """Return True when the error is a Postgres unique constraint violation."""
    return exc.code == UNIQUE_VIOLATION


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise PostgREST errors as PersistenceError after logging them."""
    try:
        yield
    except APIError as exc:
        _logger.exception("Supabase request failed: %s", action)
        raise PersistenceError(f"Failed to {action}") from exc
