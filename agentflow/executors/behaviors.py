"""
Agent behaviours

Each behaviour is one way of turning an agent's input into a StepResult.
The registry picks a behaviour per agent id; nothing here switches on names.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
from abc import ABC, abstractmethod
import asyncio

from ..models import Agent, StepResult
from ..tools.registry import ToolRegistry

DEFAULT_INTENT = "workflow_complete"

# Checked in order against a tool result: first key set to anything but None/False wins
DEFAULT_INTENT_RULES: List[Tuple[str, str]] = [
    ("authenticated", "need_balance_info"),
    ("balance", "workflow_complete"),
    ("error", "workflow_error"),
]


class AgentBehavior(ABC):

    @abstractmethod
    async def run(self, agent: Agent, input_data: Dict[str, Any]) -> StepResult: ...


class ScriptedBehavior(AgentBehavior):
    """
    Simulated agent that always answers with the same intent.

    ``build`` receives (agent, input) and returns the output payload; it may be
    a plain function or a coroutine function.
    """

    def __init__(self, intent: str, build: Callable[[Agent, Dict[str, Any]], Dict[str, Any]]):
        self.intent = intent
        self.build = build

    async def run(self, agent: Agent, input_data: Dict[str, Any]) -> StepResult:
        if asyncio.iscoroutinefunction(self.build):
            output = await self.build(agent, input_data)
        else:
            output = self.build(agent, input_data)
        return StepResult(output=output, output_intent=self.intent)


class ToolBehavior(AgentBehavior):
    """Runs the agent's bound tool and derives the intent from the result."""

    def __init__(self, tools: ToolRegistry, intent_rules: Optional[List[Tuple[str, str]]] = None):
        self.tools = tools
        self.intent_rules = intent_rules if intent_rules is not None else DEFAULT_INTENT_RULES

    async def run(self, agent: Agent, input_data: Dict[str, Any]) -> StepResult:
        result = await self.tools.execute(agent.tool_id, input_data)
        return StepResult(output=result, output_intent=self.determine_output_intent(agent, result))

    def determine_output_intent(self, agent: Agent, result: Dict[str, Any]) -> str:
        for key, intent in self.intent_rules:
            value = result.get(key)
            if value is not None and value is not False:
                return intent
        return agent.output_intents[0] if agent.output_intents else DEFAULT_INTENT


class EchoBehavior(AgentBehavior):
    """Fallback for agents with neither a registered behaviour nor a tool."""

    async def run(self, agent: Agent, input_data: Dict[str, Any]) -> StepResult:
        return StepResult(
            output={
                "message": f"Agent {agent.name} processed request",
                "processed_data": input_data,
                "agent_response": f"Processed by {agent.name} using prompt: {agent.system_prompt[:100]}...",
            },
            output_intent=agent.output_intents[0] if agent.output_intents else DEFAULT_INTENT,
        )
