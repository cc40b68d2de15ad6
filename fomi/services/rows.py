"""
Row Parsing

Turns PostgREST rows into models.

Reads drop rows that fail validation and keep the rest. Writes treat a
malformed returned row as a backend failure.
"""

from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.exceptions import BackendError
from ..core.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def _row_id(row: Any) -> Optional[str]:
    return row.get("id") if isinstance(row, dict) else None


def parse_row(model: Type[M], row: Any, source: str) -> Optional[M]:
    """One row from a read; None when it is missing or malformed."""
    if not row:
        return None
    try:
        return model.model_validate(row)
    except ValidationError as e:
        logger.warning(
            "row_dropped",
            source=source,
            model=model.__name__,
            row_id=_row_id(row),
            errors=e.error_count(),
        )
        return None


def parse_rows(model: Type[M], rows: Optional[Iterable[Any]], source: str) -> List[M]:
    """Rows from a read, skipping the malformed ones."""
    parsed = (parse_row(model, row, source) for row in rows or [])
    return [item for item in parsed if item is not None]


def parse_written_row(model: Type[M], row: Any, source: str) -> M:
    """
    The row returned by an insert or update.

    Raises:
        BackendError: if the row is missing or does not validate
    """
    try:
        return model.model_validate(row)
    except ValidationError as e:
        logger.error("written_row_invalid", source=source, model=model.__name__, error=str(e))
        raise BackendError(f"Unexpected {model.__name__} row from {source}", status_code=502) from e
