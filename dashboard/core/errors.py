"""
Operation-boundary error mapping.

Backend failures are logged with full detail and surfaced to callers as a
generic 500; validation and other HTTP errors pass through untouched.
"""

import logging
from contextlib import contextmanager

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from dashboard.schemas.filters import validation_message

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"


@contextmanager
def backend_errors(operation: str):
    try:
        yield
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"[DB] Error {operation}: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


def parse_query(model: type[BaseModel], **params):
    """
    Builds a filter model from route parameters, dropping the ones the caller
    left out so model defaults apply. Raises HTTP 400 with a field-specific
    message on invalid input.
    """
    supplied = {k: v for k, v in params.items() if v is not None}
    try:
        return model(**supplied)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e, model))
