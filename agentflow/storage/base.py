"""
Repository interfaces

The engine only depends on these abstractions; storage backends live elsewhere.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models import Agent, RunUpdate, Workflow, WorkflowRun


class AgentRepository(ABC):

    @abstractmethod
    async def create(self, agent: Agent) -> Agent: ...

    @abstractmethod
    async def get(self, agent_id: str) -> Agent: ...

    @abstractmethod
    async def get_by_name(self, name: str) -> Agent: ...

    @abstractmethod
    async def update(self, agent_id: str, changes: Dict[str, Any]) -> Agent: ...

    @abstractmethod
    async def delete(self, agent_id: str) -> None: ...

    @abstractmethod
    async def list(self, active_only: bool = True) -> List[Agent]: ...

    @abstractmethod
    async def find_by_intent(self, intent: str) -> List[Agent]: ...


class WorkflowRepository(ABC):

    @abstractmethod
    async def create(self, workflow: Workflow) -> Workflow: ...

    @abstractmethod
    async def get(self, workflow_id: str) -> Workflow: ...

    @abstractmethod
    async def delete(self, workflow_id: str) -> None: ...

    @abstractmethod
    async def list(self, active_only: bool = True, name: Optional[str] = None) -> List[Workflow]: ...


class RunRepository(ABC):

    @abstractmethod
    async def create(self, workflow_id: str, input_data: Dict[str, Any]) -> WorkflowRun:
        """Store a new run in ``running`` status."""

    @abstractmethod
    async def finalize(self, run_id: str, update: RunUpdate) -> WorkflowRun:
        """Apply the single terminal update to a run."""

    @abstractmethod
    async def get(self, run_id: str) -> WorkflowRun: ...

    @abstractmethod
    async def list_for_workflow(self, workflow_id: str) -> List[WorkflowRun]: ...
