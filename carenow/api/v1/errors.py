"""
Mapping of failures to HTTP errors
"""

import logging

from fastapi import HTTPException

from carenow.core.exceptions import (
    Failure,
    ValidationFailure,
    NotFoundFailure,
    InvalidJobTransitionError,
    ConcurrentModificationError,
    UnsupportedEarningsWindowError,
)

logger = logging.getLogger(__name__)


def status_code_for(failure: Failure) -> int:
    if isinstance(failure, (InvalidJobTransitionError, ConcurrentModificationError)):
        return 409
    if isinstance(failure, NotFoundFailure):
        return 404
    if isinstance(failure, ValidationFailure):
        return 400
    if isinstance(failure, UnsupportedEarningsWindowError):
        return 501
    return 500


def http_error(failure: Failure) -> HTTPException:
    """
    HTTPException for a failure raised by a service.

    Example:
        try:
            return await service.accept_job(partner_id, job_id)
        except Failure as e:
            raise http_error(e)
    """
    status_code = status_code_for(failure)
    if status_code >= 500:
        logger.error(f"Request failed: {failure}")
    return HTTPException(status_code=status_code, detail=failure.message)
