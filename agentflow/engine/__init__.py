"""
Core workflow engine components

This module contains the graph traversal engine, graph snapshots and run tracking.
"""

from .engine import WorkflowEngine, DEFAULT_MAX_STEPS
from .graph import (
    GraphLoader,
    GraphSnapshot,
    NodeConventions,
    ResolvedNode,
    find_entry_node,
    is_entry_node,
    is_terminal_node
)
from .run_state import RunTracker

__all__ = [
    "WorkflowEngine",
    "DEFAULT_MAX_STEPS",
    "GraphLoader",
    "GraphSnapshot",
    "NodeConventions",
    "ResolvedNode",
    "find_entry_node",
    "is_entry_node",
    "is_terminal_node",
    "RunTracker"
]
