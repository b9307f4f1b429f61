"""
Step executors

The engine calls a StepExecutor for every node; the default implementation
dispatches to per-agent behaviours held in an ExecutorRegistry.
"""

from .executor import StepExecutor, ExecutorRegistry, AgentStepExecutor
from .behaviors import AgentBehavior, ScriptedBehavior, ToolBehavior, EchoBehavior

__all__ = [
    "StepExecutor",
    "ExecutorRegistry",
    "AgentStepExecutor",
    "AgentBehavior",
    "ScriptedBehavior",
    "ToolBehavior",
    "EchoBehavior",
]
