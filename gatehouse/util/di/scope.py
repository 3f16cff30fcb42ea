"""Custom Dishka scopes for Gatehouse."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Gatehouse dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (config, engine, HTTP client, OAuth client)
    - UOW: Unit of Work (one HTTP request)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
