#!/usr/bin/env python3
"""
Custom exceptions and error handlers for the web application.
"""

import logging
from typing import Any, Dict, Optional
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceException(Exception):
    """Base exception for service layer errors."""
    status_code = 500

    def extra(self) -> Dict[str, Any]:
        """Additional fields for the error response body."""
        return {}


class ItemNotFoundException(ServiceException):
    """Raised when a lost or found item does not exist."""
    status_code = 404


class HandoffNotFoundException(ServiceException):
    """Raised when a handoff session does not exist."""
    status_code = 404


class ForbiddenException(ServiceException):
    """Raised when the caller may not act on the resource."""
    status_code = 403


class HandoffLockedException(ServiceException):
    """Raised when a session is locked after too many attempts."""
    status_code = 423


class HandoffExpiredException(ServiceException):
    """Raised when a session has expired or is no longer active."""
    status_code = 410


class IncorrectCodeException(ServiceException):
    """Raised when a submitted code does not match. The caller may retry."""
    status_code = 400

    def __init__(self, message: str, remaining_attempts: Optional[int] = None):
        super().__init__(message)
        self.remaining_attempts = remaining_attempts

    def extra(self) -> Dict[str, Any]:
        return {"remaining_attempts": self.remaining_attempts}


class CodeValidationException(ServiceException):
    """Raised when a submitted code is malformed."""
    status_code = 422


class PairingConflictException(ServiceException):
    """Raised when a pairing or session conflicts with existing state."""
    status_code = 409


async def service_exception_handler(
    request: Request,
    exc: ServiceException
) -> JSONResponse:
    """
    Handle service layer exceptions.

    Args:
        request: The FastAPI request.
        exc: The service exception.

    Returns:
        JSONResponse with error details.
    """
    if exc.status_code >= 500:
        logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"{exc.__class__.__name__} in {request.url.path}: {exc}")

    content = {
        "success": False,
        "error": str(exc),
        "type": exc.__class__.__name__
    }
    content.update(exc.extra())

    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """
    Handle FastAPI HTTP exceptions with consistent format.

    Args:
        request: The FastAPI request.
        exc: The HTTP exception.

    Returns:
        JSONResponse with error details.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "type": "HTTPException"
        }
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: The FastAPI request.
        exc: The exception.

    Returns:
        JSONResponse with error details.
    """
    logger.exception(f"Unexpected error in {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "type": "InternalError"
        }
    )
