from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Iterator

from fastapi import HTTPException

from academy.core.errors import AcademyError, ConversionError, NotFoundError, PersistenceError, ValidationError


logger = logging.getLogger(__name__)


def status_code_for(exc: AcademyError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConversionError):
        return 400
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, PersistenceError):
        return 503
    return 400


@contextmanager
def service_errors() -> Iterator[None]:
    try:
        yield
    except AcademyError as exc:
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.warning('service_unavailable error=%s', exc)
        raise HTTPException(status_code=status_code, detail=str(exc)) from exc
