from gatehouse.util.di.base import Provider
from gatehouse.util.di.scope import Scope

__all__ = ["Provider", "Scope"]
