"""Base type for domain ports."""

from typing import Protocol


class Port(Protocol):
    """Marker for interfaces the domain depends on.

    Implementations are adapters in infrastructure/ and subclass the port
    explicitly so missing methods fail at instantiation.
    """
