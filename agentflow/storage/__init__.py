"""
Persistence layer

Abstract repositories used by the engine plus in-memory implementations.
"""

from .base import AgentRepository, WorkflowRepository, RunRepository
from .memory import InMemoryAgentRepository, InMemoryWorkflowRepository, InMemoryRunRepository

__all__ = [
    "AgentRepository",
    "WorkflowRepository",
    "RunRepository",
    "InMemoryAgentRepository",
    "InMemoryWorkflowRepository",
    "InMemoryRunRepository",
]
