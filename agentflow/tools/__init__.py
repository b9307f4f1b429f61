"""
Tool registry and implementations

Contains the tool registry and the simulated built-in tools agents can use.
"""

from .registry import ToolRegistry

from .registry import (
    get_postpaid_balance,
    authenticate_user,
    send_notification,
    create_ticket
)

__all__ = [
    "ToolRegistry",
    "get_postpaid_balance",
    "authenticate_user",
    "send_notification",
    "create_ticket"
]
