from typing import Dict, Any, Callable, List, Optional
from datetime import datetime, timedelta
import logging
import uuid

from ..errors import NotFoundError, ValidationError
from ..events.sinks import (
    TOOL_EXECUTION_ERROR,
    TOOL_EXECUTION_START,
    TOOL_EXECUTION_SUCCESS,
    EventSink,
    record_best_effort,
)
from ..models import Tool

logger = logging.getLogger(__name__)


BUILTIN_TOOLS = [
    {
        "name": "get_postpaid_balance",
        "description": "Retrieves the postpaid balance for a customer account",
        "parameters": {
            "customer_id": {"type": "string", "required": True, "description": "Customer ID to retrieve balance for"},
        },
    },
    {
        "name": "authenticate_user",
        "description": "Authenticates user credentials and returns session information",
        "parameters": {
            "user_id": {"type": "string", "required": True, "description": "User ID to authenticate"},
            "password": {"type": "string", "required": False, "description": "User password (optional for demo)"},
        },
    },
    {
        "name": "send_notification",
        "description": "Sends a notification to a user",
        "parameters": {
            "recipient": {"type": "string", "required": True, "description": "Recipient user ID"},
            "message": {"type": "string", "required": True, "description": "Notification message"},
        },
    },
    {
        "name": "create_ticket",
        "description": "Creates a support ticket",
        "parameters": {
            "customer_id": {"type": "string", "required": True, "description": "Customer ID"},
            "subject": {"type": "string", "required": True, "description": "Ticket subject"},
            "priority": {"type": "string", "required": False, "description": "Ticket priority (low, medium, high)"},
        },
    },
]


class ToolRegistry:
    """
    Registry for tools that agents can be bound to.

    A tool is a definition plus, optionally, a Python function. Tools defined
    through the API have no function and answer with a generic result.
    Executions are logged as tool_execution_* events when a sink is given.
    """

    def __init__(self, events: Optional[EventSink] = None, register_defaults: bool = True):
        """Initialize tool registry, optionally with the built-in tools."""
        self.events = events
        self.tools: Dict[str, Callable] = {}
        self.definitions: Dict[str, Tool] = {}
        if register_defaults:
            self.register_builtin()

    def register(self, name: str, func: Callable, description: str = "",
                 parameters: Dict[str, Any] = None) -> Tool:
        """Register a tool function under a stable name; the name doubles as the tool id."""
        self.tools[name] = func
        self.definitions[name] = Tool(
            id=name, name=name, description=description, parameters=parameters or {}
        )
        return self.definitions[name]

    def create(self, tool: Tool) -> Tool:
        """Add a tool definition without an implementation"""
        if tool.name in self.definitions:
            raise ValidationError(f"Tool named '{tool.name}' already exists")
        definition = tool.model_copy(update={"id": tool.name})
        self.definitions[tool.name] = definition
        logger.info(f"Created tool {tool.name}")
        return definition

    def update(self, name: str, changes: Dict[str, Any]) -> Tool:
        current = self.describe(name)
        changes = {k: v for k, v in changes.items() if k not in ("id", "name")}
        self.definitions[name] = Tool.model_validate({**current.model_dump(), **changes})
        return self.definitions[name]

    def delete(self, name: str) -> None:
        self.describe(name)
        del self.definitions[name]
        self.tools.pop(name, None)

    def register_builtin(self) -> List[Tool]:
        """Register the built-in tools that are missing; returns the ones added."""
        added = []
        for entry in BUILTIN_TOOLS:
            if entry["name"] not in self.definitions:
                added.append(self.register(entry["name"], BUILTIN_FUNCTIONS[entry["name"]],
                                           entry["description"], entry["parameters"]))
        return added

    def get(self, name: str) -> Callable:
        """Retrieve a tool function by its registered name."""
        if name not in self.tools:
            raise NotFoundError("Tool", name)
        return self.tools[name]

    def describe(self, name: str) -> Tool:
        if name not in self.definitions:
            raise NotFoundError("Tool", name)
        return self.definitions[name]

    def list_tools(self) -> List[str]:
        """Get list of all registered tool names."""
        return list(self.definitions.keys())

    async def execute(self, name: str, params: Dict[str, Any]) -> Dict[str, Any]:
        tool = self.describe(name)
        params = params or {}
        base = {"tool_id": tool.id, "tool_name": tool.name, "parameters": params}
        await self._record(TOOL_EXECUTION_START, base)
        logger.info(f"Executing tool {name}")

        try:
            func = self.tools.get(name)
            result = func(params) if func else generic_result(tool, params)
        except Exception as e:
            await self._record(TOOL_EXECUTION_ERROR, {**base, "error": str(e)})
            raise

        await self._record(TOOL_EXECUTION_SUCCESS, {**base, "result": result})
        return result

    async def _record(self, event_type: str, details: Dict[str, Any]) -> None:
        if self.events is not None:
            await record_best_effort(self.events, event_type, {**details, "timestamp": datetime.now().isoformat()})


def generic_result(tool: Tool, params: Dict[str, Any]) -> Dict[str, Any]:
    """Result for tools that have a definition but no implementation"""
    return {
        "tool_name": tool.name,
        "executed": True,
        "parameters": params,
        "result": f"Tool {tool.name} executed successfully",
        "timestamp": datetime.now().isoformat(),
    }


# Built-in tool implementations. All of them are simulated.

def get_postpaid_balance(params: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now()
    return {
        "customer_id": params.get("customer_id") or params.get("user_id") or "user_123",
        "balance": 85.50,
        "currency": "USD",
        "last_updated": now.isoformat(),
        "account_status": "active",
        "due_date": (now + timedelta(days=30)).isoformat(),
    }


def authenticate_user(params: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now()
    return {
        "user_id": params.get("user_id", "user_123"),
        "authenticated": True,
        "session_token": f"session_{uuid.uuid4().hex[:12]}",
        "expires_at": (now + timedelta(hours=24)).isoformat(),
        "user_role": "customer",
    }


def send_notification(params: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "notification_id": f"notif_{uuid.uuid4().hex[:12]}",
        "recipient": params.get("recipient"),
        "message": params.get("message"),
        "status": "sent",
        "sent_at": datetime.now().isoformat(),
    }


def create_ticket(params: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "ticket_id": f"ticket_{uuid.uuid4().hex[:12]}",
        "customer_id": params.get("customer_id"),
        "subject": params.get("subject"),
        "status": "open",
        "priority": params.get("priority") or "medium",
        "created_at": datetime.now().isoformat(),
    }


BUILTIN_FUNCTIONS: Dict[str, Callable] = {
    "get_postpaid_balance": get_postpaid_balance,
    "authenticate_user": authenticate_user,
    "send_notification": send_notification,
    "create_ticket": create_ticket,
}
