"""Auth domain commands."""

from .login import (
    CompleteLogin,
    CompleteLoginHandler,
    CompleteLoginResult,
    InitiateLogin,
    InitiateLoginHandler,
    InitiateLoginResult,
)

__all__ = [
    "CompleteLogin",
    "CompleteLoginHandler",
    "CompleteLoginResult",
    "InitiateLogin",
    "InitiateLoginHandler",
    "InitiateLoginResult",
]
