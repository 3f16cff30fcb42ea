"""Auth domain services."""

from .flow import AuthFlowController, FlowState, LoginAttempt, append_query_param
from .reconciler import AccountReconciler
from .token import TokenIssuer

__all__ = [
    "AccountReconciler",
    "AuthFlowController",
    "FlowState",
    "LoginAttempt",
    "TokenIssuer",
    "append_query_param",
]
