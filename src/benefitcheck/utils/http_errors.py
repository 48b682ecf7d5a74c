"""Translate domain errors into HTTP errors for the routers."""

from http import HTTPStatus

from fastapi import HTTPException

from benefitcheck.exceptions import (
    AccessDeniedError,
    AuthenticationFailureError,
    BenefitCheckError,
    ConcurrentUpdateLostError,
    NotFoundError,
    UnsupportedFieldError,
)

STATUS_BY_ERROR: dict[type[BenefitCheckError], HTTPStatus] = {
    AccessDeniedError: HTTPStatus.FORBIDDEN,
    NotFoundError: HTTPStatus.NOT_FOUND,
    AuthenticationFailureError: HTTPStatus.UNPROCESSABLE_ENTITY,
    ConcurrentUpdateLostError: HTTPStatus.CONFLICT,
    UnsupportedFieldError: HTTPStatus.BAD_REQUEST,
}


def http_exception_for(error: BenefitCheckError) -> HTTPException:
    """
    Build the HTTPException for a domain error.

    Decryption failures get a structured body so clients can tell them
    apart from request validation errors, which share the status code.
    """
    status_code = STATUS_BY_ERROR.get(type(error), HTTPStatus.INTERNAL_SERVER_ERROR)
    if isinstance(error, AuthenticationFailureError):
        return HTTPException(
            status_code=status_code,
            detail={"error": "decryption_failed", "message": error.message},
        )
    return HTTPException(status_code=status_code, detail=error.message)
