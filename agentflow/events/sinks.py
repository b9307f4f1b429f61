from typing import Any, Awaitable, Callable, Dict, List, Optional
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
import asyncio
import logging

from ..models import LogEvent

logger = logging.getLogger(__name__)

EventListener = Callable[[LogEvent], Awaitable[None]]

WORKFLOW_START = "workflow_start"
WORKFLOW_STEP = "workflow_step"
WORKFLOW_STEP_MANUAL = "workflow_step_manual"
WORKFLOW_COMPLETE = "workflow_complete"
WORKFLOW_ERROR = "workflow_error"
AGENT_EXECUTION_START = "agent_execution_start"
AGENT_EXECUTION_COMPLETE = "agent_execution_complete"
AGENT_EXECUTION_ERROR = "agent_execution_error"
TOOL_EXECUTION_START = "tool_execution_start"
TOOL_EXECUTION_SUCCESS = "tool_execution_success"
TOOL_EXECUTION_ERROR = "tool_execution_error"


class EventSink(ABC):
    """Append-only destination for structured engine events."""

    @abstractmethod
    async def record(self, event_type: str, details: Dict[str, Any], run_id: Optional[str] = None) -> LogEvent:
        """Store one event. Must either complete or raise."""


async def record_best_effort(sink: EventSink, event_type: str, details: Dict[str, Any],
                             run_id: Optional[str] = None) -> Optional[LogEvent]:
    """Record an event, logging instead of raising when the sink fails."""
    try:
        return await sink.record(event_type, details, run_id)
    except Exception as e:
        logger.warning(f"Failed to record {event_type} event for run {run_id}: {e}")
        return None


class InMemoryEventSink(EventSink):
    """
    Event log kept in a list, in the order events were recorded.

    Also serves the log queries of the API: filtering, per-run history,
    retention cleanup and 24 hour statistics. Listeners are awaited after each
    append so WebSocket subscribers see events in causal order.
    """

    def __init__(self):
        self.events: List[LogEvent] = []
        self.listeners: List[EventListener] = []
        self._lock = asyncio.Lock()

    def subscribe(self, listener: EventListener) -> None:
        self.listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def record(self, event_type: str, details: Dict[str, Any], run_id: Optional[str] = None) -> LogEvent:
        event = LogEvent(event_type=event_type, details=details, workflow_run_id=run_id)
        async with self._lock:
            self.events.append(event)
        logger.debug(f"[{run_id}] {event_type}")

        for listener in list(self.listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.warning(f"Event listener failed for {event_type}: {e}")
        return event

    def get_logs(self, event_type: Optional[str] = None, run_id: Optional[str] = None,
                 limit: Optional[int] = None) -> List[LogEvent]:
        """Newest first, optionally filtered by event type and run."""
        logs = [
            e for e in reversed(self.events)
            if (event_type is None or e.event_type == event_type)
            and (run_id is None or e.workflow_run_id == run_id)
        ]
        return logs[:limit] if limit else logs

    def get_run_logs(self, run_id: str) -> List[LogEvent]:
        """Oldest first, for replaying a run."""
        return [e for e in self.events if e.workflow_run_id == run_id]

    def get_logs_by_event_type(self, event_type: str, limit: int = 100) -> List[LogEvent]:
        return self.get_logs(event_type=event_type, limit=limit)

    async def delete_old_logs(self, days_old: int = 30) -> int:
        cutoff = datetime.now() - timedelta(days=days_old)
        async with self._lock:
            kept = [e for e in self.events if e.created_at >= cutoff]
            removed = len(self.events) - len(kept)
            self.events = kept
        if removed:
            logger.info(f"Deleted {removed} log entries older than {days_old} days")
        return removed

    def get_log_stats(self) -> Dict[str, int]:
        """Event counts per type over the last 24 hours."""
        since = datetime.now() - timedelta(hours=24)
        stats: Dict[str, int] = {}
        for event in self.events:
            if event.created_at >= since:
                stats[event.event_type] = stats.get(event.event_type, 0) + 1
        return stats
