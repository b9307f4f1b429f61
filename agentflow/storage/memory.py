from typing import Any, Dict, List, Optional
import asyncio
import logging

from ..errors import NotFoundError, RunStateError, ValidationError
from ..models import Agent, RunStatus, RunUpdate, Workflow, WorkflowRun
from .base import AgentRepository, RunRepository, WorkflowRepository

logger = logging.getLogger(__name__)


class InMemoryAgentRepository(AgentRepository):
    """Agents kept in a dict keyed by id"""

    def __init__(self):
        self.agents: Dict[str, Agent] = {}
        self._lock = asyncio.Lock()

    async def create(self, agent: Agent) -> Agent:
        async with self._lock:
            if any(a.name == agent.name for a in self.agents.values()):
                raise ValidationError(f"Agent named '{agent.name}' already exists")
            self.agents[agent.id] = agent
        logger.info(f"Created agent {agent.name} ({agent.id})")
        return agent

    async def get(self, agent_id: str) -> Agent:
        agent = self.agents.get(agent_id)
        if not agent:
            raise NotFoundError("Agent", agent_id)
        return agent

    async def get_by_name(self, name: str) -> Agent:
        agent = next((a for a in self.agents.values() if a.name == name), None)
        if not agent:
            raise NotFoundError("Agent", name)
        return agent

    async def update(self, agent_id: str, changes: Dict[str, Any]) -> Agent:
        async with self._lock:
            current = await self.get(agent_id)
            changes = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
            updated = Agent.model_validate({**current.model_dump(), **changes})
            self.agents[agent_id] = updated
        return updated

    async def delete(self, agent_id: str) -> None:
        async with self._lock:
            if agent_id not in self.agents:
                raise NotFoundError("Agent", agent_id)
            del self.agents[agent_id]

    async def list(self, active_only: bool = True) -> List[Agent]:
        agents = [a for a in self.agents.values() if a.is_active or not active_only]
        return sorted(agents, key=lambda a: a.created_at, reverse=True)

    async def find_by_intent(self, intent: str) -> List[Agent]:
        return [a for a in self.agents.values() if a.is_active and intent in a.input_intents]


class InMemoryWorkflowRepository(WorkflowRepository):
    """Workflow definitions kept in a dict keyed by id"""

    def __init__(self):
        self.workflows: Dict[str, Workflow] = {}
        self._lock = asyncio.Lock()

    async def create(self, workflow: Workflow) -> Workflow:
        node_ids = [n.id for n in workflow.nodes]
        if len(set(node_ids)) != len(node_ids):
            raise ValidationError("Node ids must be unique within a workflow")
        for edge in workflow.edges:
            for endpoint in (edge.from_node_id, edge.to_node_id):
                if endpoint not in node_ids:
                    raise ValidationError(f"Edge {edge.id} references unknown node {endpoint}")

        # Stamp ownership onto nodes and edges; order is preserved
        stored = workflow.model_copy(update={
            "nodes": [n.model_copy(update={"workflow_id": workflow.id}) for n in workflow.nodes],
            "edges": [e.model_copy(update={"workflow_id": workflow.id}) for e in workflow.edges],
        })
        async with self._lock:
            self.workflows[stored.id] = stored
        logger.info(f"Created workflow '{stored.name}' with {len(stored.nodes)} nodes, {len(stored.edges)} edges")
        return stored

    async def get(self, workflow_id: str) -> Workflow:
        workflow = self.workflows.get(workflow_id)
        if not workflow:
            raise NotFoundError("Workflow", workflow_id)
        return workflow

    async def delete(self, workflow_id: str) -> None:
        async with self._lock:
            if workflow_id not in self.workflows:
                raise NotFoundError("Workflow", workflow_id)
            del self.workflows[workflow_id]

    async def list(self, active_only: bool = True, name: Optional[str] = None) -> List[Workflow]:
        workflows = [
            w for w in self.workflows.values()
            if (w.is_active or not active_only) and (name is None or name.lower() in w.name.lower())
        ]
        return sorted(workflows, key=lambda w: w.created_at, reverse=True)


class InMemoryRunRepository(RunRepository):
    """
    Workflow runs kept in a dict keyed by id.

    Callers always receive copies, so a stored run only changes through finalize().
    """

    def __init__(self):
        self.runs: Dict[str, WorkflowRun] = {}
        self._lock = asyncio.Lock()

    async def create(self, workflow_id: str, input_data: Dict[str, Any]) -> WorkflowRun:
        run = WorkflowRun(workflow_id=workflow_id, status=RunStatus.RUNNING, input_data=input_data)
        async with self._lock:
            self.runs[run.id] = run
        return run.model_copy(deep=True)

    async def finalize(self, run_id: str, update: RunUpdate) -> WorkflowRun:
        async with self._lock:
            run = self.runs.get(run_id)
            if not run:
                raise NotFoundError("Workflow run", run_id)
            if run.is_terminal:
                raise RunStateError(f"Workflow run {run_id} is already {run.status.value}")
            finalized = run.model_copy(update={
                "status": update.status,
                "output_data": update.output_data,
                "error_message": update.error_message,
                "execution_path": list(update.execution_path),
                "termination": update.termination,
                "completed_at": update.completed_at,
            })
            self.runs[run_id] = finalized
        return finalized.model_copy(deep=True)

    async def get(self, run_id: str) -> WorkflowRun:
        run = self.runs.get(run_id)
        if not run:
            raise NotFoundError("Workflow run", run_id)
        return run.model_copy(deep=True)

    async def list_for_workflow(self, workflow_id: str) -> List[WorkflowRun]:
        runs = [r.model_copy(deep=True) for r in self.runs.values() if r.workflow_id == workflow_id]
        return sorted(runs, key=lambda r: r.started_at, reverse=True)
