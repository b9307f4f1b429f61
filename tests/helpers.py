"""Test harness: an engine wired to in-memory collaborators."""

from typing import Any, Callable, Dict, List, Optional

from agentflow.engine.engine import WorkflowEngine
from agentflow.engine.graph import GraphLoader, NodeConventions
from agentflow.events.sinks import InMemoryEventSink
from agentflow.executors.behaviors import AgentBehavior, ScriptedBehavior
from agentflow.executors.executor import AgentStepExecutor, ExecutorRegistry
from agentflow.models import Agent, Edge, Node, Workflow
from agentflow.storage.base import RunRepository
from agentflow.storage.memory import InMemoryAgentRepository, InMemoryRunRepository, InMemoryWorkflowRepository
from agentflow.tools.registry import ToolRegistry


class FailingBehavior(AgentBehavior):
    async def run(self, agent, input_data):
        raise RuntimeError(f"{agent.name} exploded")


class Harness:
    """Repositories, sink, registry and engine for one test."""

    def __init__(self, max_steps: int = 10, conventions: Optional[NodeConventions] = None,
                 runs: Optional[RunRepository] = None):
        self.agents = InMemoryAgentRepository()
        self.workflows = InMemoryWorkflowRepository()
        self.runs = runs or InMemoryRunRepository()
        self.events = InMemoryEventSink()
        self.tools = ToolRegistry(events=self.events)
        self.registry = ExecutorRegistry(self.tools)
        self.engine = WorkflowEngine(
            graphs=GraphLoader(self.workflows, self.agents),
            runs=self.runs,
            executor=AgentStepExecutor(self.registry, self.events),
            events=self.events,
            max_steps=max_steps,
            conventions=conventions,
        )

    async def add_agent(
        self,
        name: str,
        intent: Optional[str] = None,
        build: Optional[Callable[[Agent, Dict[str, Any]], Dict[str, Any]]] = None,
        fail: bool = False,
        **fields,
    ) -> Agent:
        agent = await self.agents.create(Agent(
            name=name, system_prompt=f"You are {name}.", model_name="simulated", **fields
        ))
        if fail:
            self.registry.register(agent.id, FailingBehavior())
        elif intent is not None:
            self.registry.register(agent.id, ScriptedBehavior(
                intent, build or (lambda a, data: {"handled_by": a.name, "seen": data})
            ))
        return agent

    async def add_workflow(self, nodes: List[Node], edges: List[Edge], name: str = "test") -> Workflow:
        return await self.workflows.create(Workflow(name=name, nodes=nodes, edges=edges))

    def event_types(self, run_id: str) -> List[str]:
        return [e.event_type for e in self.events.get_run_logs(run_id)]


