"""Translate domain exceptions into HTTP responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from society_portal.api.dependencies import get_request_id
from society_portal.domain.exceptions import (
    ActionInProgressError,
    AuthenticationError,
    CheckoutError,
    DomainException,
    OnboardingError,
    PaymentConfigurationError,
    PaymentVerificationError,
    RemoteAPIError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _status_for(exc: DomainException) -> int:
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, ActionInProgressError):
        return 409
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, OnboardingError):
        return 409
    if isinstance(exc, PaymentConfigurationError):
        return 503
    if isinstance(exc, PaymentVerificationError):
        return 502
    if isinstance(exc, CheckoutError):
        return 400
    if isinstance(exc, RemoteAPIError):
        # Remote 4xx answers are the user's to fix; everything else is upstream
        if exc.status_code and 400 <= exc.status_code < 500:
            return exc.status_code
        return 502
    return 500


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = _status_for(exc)
    body = {"detail": str(exc)}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    if isinstance(exc, CheckoutError):
        body["title"] = exc.title

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc}",
        extra={"request_id": get_request_id(request), "path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
