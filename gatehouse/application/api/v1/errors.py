"""Centralized error transformation for API routes.

Maps Gatehouse errors (domain and infrastructure) to HTTPException responses.
"""

from typing import Any

from fastapi import HTTPException

from gatehouse.domain.shared.error import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DomainError,
    GatehouseError,
    InfrastructureError,
    NotFoundError,
)

DOMAIN_ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: 404,
    ConflictError: 409,
    AuthorizationError: 403,
}


def map_error(error: GatehouseError) -> HTTPException:
    """Map a Gatehouse error to an HTTPException.

    Args:
        error: The Gatehouse error to map.

    Returns:
        HTTPException with appropriate status code and detail.
    """
    detail: dict[str, Any] = {
        "code": error.code,
        "message": error.message,
    }

    # Misconfiguration (e.g. token signing) is our fault, not a transient outage
    if isinstance(error, ConfigurationError):
        return HTTPException(status_code=500, detail=detail)

    if isinstance(error, InfrastructureError):
        # Infrastructure errors → 503 Service Unavailable
        return HTTPException(status_code=503, detail=detail)

    if isinstance(error, DomainError):
        # Distinguish 401 (unauthenticated) from 403 (unauthorized)
        if isinstance(error, AuthorizationError) and error.code == "missing_token":
            return HTTPException(
                status_code=401,
                detail=detail,
                headers={"WWW-Authenticate": "Bearer"},
            )
        status_code = DOMAIN_ERROR_STATUS_MAP.get(type(error), 400)
        return HTTPException(status_code=status_code, detail=detail)

    # Fallback for unknown GatehouseError subclasses
    return HTTPException(status_code=500, detail=detail)
