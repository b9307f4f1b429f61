"""
AgentFlow

Workflow engine that chains agents through a graph of intent-labeled edges.
"""

__version__ = "1.0.0"

from .engine.engine import WorkflowEngine
from .engine.graph import GraphLoader, NodeConventions
from .models import Agent, Node, Edge, Workflow, WorkflowRun, RunSummary, StepRecord
from .executors import AgentStepExecutor, ExecutorRegistry, StepExecutor
from .events import EventSink, InMemoryEventSink
from .tools.registry import ToolRegistry

__all__ = [
    "WorkflowEngine",
    "GraphLoader",
    "NodeConventions",
    "Agent",
    "Node",
    "Edge",
    "Workflow",
    "WorkflowRun",
    "RunSummary",
    "StepRecord",
    "AgentStepExecutor",
    "ExecutorRegistry",
    "StepExecutor",
    "EventSink",
    "InMemoryEventSink",
    "ToolRegistry"
]
