"""Error hierarchy for Gatehouse.

Error layers:
- GatehouseError: Base class for all Gatehouse errors
- DomainError: Business rule violations (4xx responses)
- InfrastructureError: Directory, identity provider and signing failures (5xx responses)

These errors are mapped to HTTP responses by the global exception handler in app.py.
"""


class GatehouseError(Exception):
    """Base class for all Gatehouse errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations - typically 4xx)
# =============================================================================


class DomainError(GatehouseError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ConflictError(DomainError):
    """Resource already exists (e.g. an external identity is already linked)."""


class AuthorizationError(DomainError):
    """Caller is not authenticated or not allowed."""


# =============================================================================
# Infrastructure Errors (system-level failures - typically 5xx)
# =============================================================================


class InfrastructureError(GatehouseError):
    """Base class for infrastructure/system errors."""


class DirectoryUnavailableError(InfrastructureError):
    """The identity directory is unreachable or rejected a query."""


class ExternalServiceError(InfrastructureError):
    """An external service (identity provider) is unavailable or failed."""


class ProviderExchangeFailedError(ExternalServiceError):
    """The provider grant could not be turned into a verified profile.

    Covers denied consent, invalid or expired state, bad authorization codes
    and provider outages. The user is sent to the failure redirect.
    """


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


class TokenSigningFailedError(ConfigurationError):
    """Access token could not be signed (missing key, unsupported algorithm)."""
