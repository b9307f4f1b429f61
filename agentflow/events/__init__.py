"""
Event sinks

Structured, append-only event log written by the engine and executors.
"""

from .sinks import (
    EventSink,
    InMemoryEventSink,
    record_best_effort,
    WORKFLOW_START,
    WORKFLOW_STEP,
    WORKFLOW_STEP_MANUAL,
    WORKFLOW_COMPLETE,
    WORKFLOW_ERROR,
    AGENT_EXECUTION_START,
    AGENT_EXECUTION_COMPLETE,
    AGENT_EXECUTION_ERROR,
    TOOL_EXECUTION_START,
    TOOL_EXECUTION_SUCCESS,
    TOOL_EXECUTION_ERROR,
)
from .broadcast import RunBroadcaster, event_message

__all__ = [
    "EventSink",
    "InMemoryEventSink",
    "record_best_effort",
    "RunBroadcaster",
    "event_message",
    "WORKFLOW_START",
    "WORKFLOW_STEP",
    "WORKFLOW_STEP_MANUAL",
    "WORKFLOW_COMPLETE",
    "WORKFLOW_ERROR",
    "AGENT_EXECUTION_START",
    "AGENT_EXECUTION_COMPLETE",
    "AGENT_EXECUTION_ERROR",
    "TOOL_EXECUTION_START",
    "TOOL_EXECUTION_SUCCESS",
    "TOOL_EXECUTION_ERROR",
]
