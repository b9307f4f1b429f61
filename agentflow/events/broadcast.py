from typing import Any, Callable, Dict, List, Set
import json
import logging

from ..models import LogEvent

logger = logging.getLogger(__name__)


def event_message(event: LogEvent) -> Dict[str, Any]:
    """JSON-ready form of an event as sent to WebSocket clients."""
    return {
        "type": "log",
        "id": event.id,
        "event_type": event.event_type,
        "run_id": event.workflow_run_id,
        "timestamp": event.created_at.isoformat(),
        "details": event.details,
    }


class RunBroadcaster:
    """
    Fans events of a run out to the WebSocket clients watching it.

    Subscribe ``broadcast`` to an InMemoryEventSink; clients that fail on send
    are dropped.
    """

    def __init__(self):
        self.connections: Dict[str, List] = {}

    def add_connection(self, run_id: str, websocket) -> None:
        if run_id not in self.connections:
            self.connections[run_id] = []
        self.connections[run_id].append(websocket)
        logger.info(f"WebSocket connected for run {run_id}")

    async def attach(self, run_id: str, websocket, history: Callable[[], List[LogEvent]]) -> int:
        """
        Replay a run's recorded events to a new client, then subscribe it.

        Replay repeats until no unsent events are left; the connection is
        added with no await in between, so every event reaches the client
        once and in recording order. Returns the number of replayed events.
        """
        sent: Set[str] = set()
        while True:
            pending = [e for e in history() if e.id not in sent]
            if not pending:
                break
            for event in pending:
                await websocket.send_text(json.dumps(event_message(event), default=str))
                sent.add(event.id)
        self.add_connection(run_id, websocket)
        return len(sent)

    def remove_connection(self, run_id: str, websocket) -> None:
        if run_id in self.connections and websocket in self.connections[run_id]:
            self.connections[run_id].remove(websocket)
            logger.info(f"WebSocket disconnected for run {run_id}")

            # Clean up empty connection lists
            if not self.connections[run_id]:
                del self.connections[run_id]

    def connection_count(self) -> int:
        return sum(len(conns) for conns in self.connections.values())

    async def broadcast(self, event: LogEvent) -> None:
        run_id = event.workflow_run_id
        if run_id is None or run_id not in self.connections:
            return

        payload = json.dumps(event_message(event), default=str)
        # Copy so failed sockets can be removed while iterating
        for websocket in self.connections[run_id].copy():
            try:
                await websocket.send_text(payload)
            except Exception as e:
                logger.warning(f"WebSocket send failed for run {run_id}: {e}")
                self.remove_connection(run_id, websocket)
