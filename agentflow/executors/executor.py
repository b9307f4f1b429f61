from typing import Any, Dict
from abc import ABC, abstractmethod
import logging

from ..errors import ExecutorError
from ..events.sinks import (
    AGENT_EXECUTION_COMPLETE,
    AGENT_EXECUTION_ERROR,
    AGENT_EXECUTION_START,
    EventSink,
    record_best_effort,
)
from ..models import Agent, StepResult
from ..tools.registry import ToolRegistry
from .behaviors import AgentBehavior, EchoBehavior, ToolBehavior

logger = logging.getLogger(__name__)


class StepExecutor(ABC):
    """Executes one node: the engine hands over the agent binding and the input."""

    @abstractmethod
    async def execute(self, binding: Agent, input_data: Dict[str, Any]) -> StepResult: ...


class ExecutorRegistry:
    """Maps agent ids to behaviours"""

    def __init__(self, tools: ToolRegistry):
        self.behaviors: Dict[str, AgentBehavior] = {}
        self.tool_behavior = ToolBehavior(tools)
        self.fallback = EchoBehavior()

    def register(self, agent_id: str, behavior: AgentBehavior) -> None:
        self.behaviors[agent_id] = behavior

    def unregister(self, agent_id: str) -> None:
        self.behaviors.pop(agent_id, None)

    def resolve(self, agent: Agent) -> AgentBehavior:
        """Registered behaviour first, then the agent's tool, then the echo fallback."""
        if agent.id in self.behaviors:
            return self.behaviors[agent.id]
        if agent.tool_id:
            return self.tool_behavior
        return self.fallback


class AgentStepExecutor(StepExecutor):
    """
    Default step executor.

    Resolves the agent's behaviour through the registry, runs it and logs
    agent_execution_* events around the call. Failures are re-raised as
    ExecutorError and never retried here.
    """

    def __init__(self, registry: ExecutorRegistry, events: EventSink):
        self.registry = registry
        self.events = events

    async def execute(self, binding: Agent, input_data: Dict[str, Any]) -> StepResult:
        base = {"agent_id": binding.id, "agent_name": binding.name, "input": input_data}
        await record_best_effort(self.events, AGENT_EXECUTION_START, base)

        try:
            result = await self.registry.resolve(binding).run(binding, input_data)
        except Exception as e:
            await record_best_effort(self.events, AGENT_EXECUTION_ERROR, {**base, "error": str(e)})
            logger.error(f"Agent {binding.name} failed: {e}")
            if isinstance(e, ExecutorError):
                raise
            raise ExecutorError(binding.name, f"Agent {binding.name} failed: {e}") from e

        await record_best_effort(self.events, AGENT_EXECUTION_COMPLETE, {
            **base, "output": result.output, "output_intent": result.output_intent,
        })
        return result
