from typing import Optional

from fastapi import Request

from ..config import Settings, settings as default_settings
from ..engine.engine import WorkflowEngine
from ..engine.graph import GraphLoader, NodeConventions
from ..events.broadcast import RunBroadcaster
from ..events.sinks import InMemoryEventSink
from ..executors.executor import AgentStepExecutor, ExecutorRegistry
from ..storage.memory import InMemoryAgentRepository, InMemoryRunRepository, InMemoryWorkflowRepository
from ..tools.registry import ToolRegistry


class Services:
    """Everything the API needs, wired together once per application"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

        self.agents = InMemoryAgentRepository()
        self.workflows = InMemoryWorkflowRepository()
        self.runs = InMemoryRunRepository()
        self.events = InMemoryEventSink()
        self.broadcaster = RunBroadcaster()
        self.events.subscribe(self.broadcaster.broadcast)

        self.tools = ToolRegistry(events=self.events)
        self.registry = ExecutorRegistry(self.tools)
        self.executor = AgentStepExecutor(self.registry, self.events)
        self.engine = WorkflowEngine(
            graphs=GraphLoader(self.workflows, self.agents),
            runs=self.runs,
            executor=self.executor,
            events=self.events,
            max_steps=self.settings.max_steps,
            completion_intents=self.settings.completion_intents,
            conventions=NodeConventions.from_settings(self.settings),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services
