from typing import Dict, Any, Iterable, Optional, Tuple
import asyncio
from datetime import datetime
import logging

from ..errors import ExecutorError, NotFoundError, WorkflowCancelledError
from ..events.sinks import (
    EventSink,
    WORKFLOW_COMPLETE,
    WORKFLOW_ERROR,
    WORKFLOW_START,
    WORKFLOW_STEP,
    WORKFLOW_STEP_MANUAL,
    record_best_effort,
)
from ..executors.executor import StepExecutor
from ..models import ManualStepResult, RunSummary, StepResult, Termination
from ..storage.base import RunRepository
from .graph import (
    GraphLoader, GraphSnapshot, NodeConventions, ResolvedNode,
    find_entry_node, is_terminal_node,
)
from .run_state import RunTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10
DEFAULT_COMPLETION_INTENTS = ("workflow_complete", "workflow_end")


def _now() -> str:
    return datetime.now().isoformat()


class WorkflowEngine:
    """
    Walks a workflow graph one node at a time.

    Each step's output intent selects the next node through the first edge
    leaving the current node with a matching trigger intent. A run ends when a
    completion intent is produced, a terminal node is reached, no edge matches
    (the run is still stored as completed, with termination "aborted") or
    ``max_steps`` steps have run.
    """

    def __init__(
        self,
        graphs: GraphLoader,
        runs: RunRepository,
        executor: StepExecutor,
        events: EventSink,
        max_steps: int = DEFAULT_MAX_STEPS,
        completion_intents: Iterable[str] = DEFAULT_COMPLETION_INTENTS,
        conventions: Optional[NodeConventions] = None,
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.graphs = graphs
        self.runs = runs
        self.executor = executor
        self.events = events
        self.max_steps = max_steps
        self.completion_intents = frozenset(completion_intents)
        self.conventions = conventions or NodeConventions()

    async def run_workflow(
        self,
        workflow_id: str,
        initial_input: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[asyncio.Event] = None,
    ) -> RunSummary:
        """
        Execute a workflow from its entry node to termination.

        Unknown workflows and graphs without an entry node fail before any run
        is stored. Once the run exists, any error marks it failed and is
        re-raised unchanged.
        """
        initial_input = initial_input or {}
        graph = await self.graphs.load_workflow(workflow_id)
        entry = find_entry_node(graph, self.conventions)

        tracker = await RunTracker.start(self.runs, workflow_id, initial_input)
        logger.info(f"[{tracker.run_id}] Starting workflow '{graph.name}' at {entry.agent.name}")

        try:
            await self.events.record(WORKFLOW_START, {
                "workflow_id": workflow_id,
                "workflow_name": graph.name,
                "input_data": initial_input,
                "timestamp": _now(),
            }, tracker.run_id)

            final_output, termination = await self._traverse(graph, entry, initial_input, tracker, cancel_token)

            run = await tracker.complete(final_output, termination)
        except Exception as e:
            await self._fail(workflow_id, tracker, e)
            raise

        # The run is already stored as completed; a sink failure here propagates
        # without a workflow_error event contradicting it
        path = [record.model_dump(mode="json") for record in run.execution_path]
        await self.events.record(WORKFLOW_COMPLETE, {
            "workflow_id": workflow_id,
            "execution_path": path,
            "final_output": final_output,
            "total_steps": tracker.step_count,
            "termination": termination.value,
            "timestamp": _now(),
        }, tracker.run_id)

        logger.info(f"[{tracker.run_id}] Workflow finished after {tracker.step_count} steps ({termination.value})")
        return RunSummary(
            run_id=run.id,
            status=run.status,
            execution_path=list(run.execution_path),
            final_output=final_output,
            total_steps=tracker.step_count,
            termination=termination,
        )

    async def _traverse(
        self,
        graph: GraphSnapshot,
        entry: ResolvedNode,
        initial_input: Dict[str, Any],
        tracker: RunTracker,
        cancel_token: Optional[asyncio.Event],
    ) -> Tuple[Dict[str, Any], Termination]:
        current = entry
        current_input = initial_input

        while True:
            if cancel_token is not None and cancel_token.is_set():
                raise WorkflowCancelledError(tracker.run_id)

            if is_terminal_node(current, self.conventions):
                logger.info(f"[{tracker.run_id}] Reached terminal node {current.agent.name}")
                return tracker.last_output, Termination.COMPLETED

            if tracker.step_count >= self.max_steps:
                logger.warning(f"[{tracker.run_id}] Step limit of {self.max_steps} reached, stopping")
                return tracker.last_output, Termination.STEP_LIMIT

            result = await self._invoke(current, current_input)
            record = tracker.record_step(current, current_input, result)
            logger.info(f"[{tracker.run_id}] Step {record.step}: {current.agent.name} -> {result.output_intent}")

            await record_best_effort(self.events, WORKFLOW_STEP, {
                "step": record.step,
                "node_id": current.id,
                "agent_name": current.agent.name,
                "input": current_input,
                "output": result.output,
                "output_intent": result.output_intent,
                "timestamp": _now(),
            }, tracker.run_id)

            if result.output_intent in self.completion_intents:
                return result.output, Termination.COMPLETED

            edge = graph.next_edge(current.id, result.output_intent)
            if edge is None:
                available = [e.trigger_intent for e in graph.outgoing(current.id)]
                logger.info(
                    f"[{tracker.run_id}] No next edge for intent '{result.output_intent}' "
                    f"from {current.agent.name} (available: {available})"
                )
                return result.output, Termination.ABORTED

            next_node = graph.get_node(edge.to_node_id)
            if next_node is None:
                raise NotFoundError("Node", edge.to_node_id)
            current = next_node
            current_input = result.output

    async def _invoke(self, resolved: ResolvedNode, input_data: Dict[str, Any]) -> StepResult:
        try:
            return await self.executor.execute(resolved.agent, input_data)
        except ExecutorError:
            raise
        except Exception as e:
            raise ExecutorError(resolved.agent.name, f"Agent {resolved.agent.name} failed: {e}") from e

    async def _fail(self, workflow_id: str, tracker: RunTracker, error: Exception) -> None:
        """Mark the run failed. Logging problems here must not hide the original error."""
        message = str(error)
        logger.error(f"[{tracker.run_id}] Workflow failed: {message}")

        if not tracker.finalized:
            try:
                await tracker.fail(message)
            except Exception as e:
                logger.error(f"[{tracker.run_id}] Could not mark run as failed: {e}")

        await record_best_effort(self.events, WORKFLOW_ERROR, {
            "workflow_id": workflow_id,
            "error": message,
            "timestamp": _now(),
        }, tracker.run_id)

    async def execute_step(self, run_id: str, node_id: str, input_data: Optional[Dict[str, Any]] = None) -> ManualStepResult:
        """
        Run a single node of an existing run outside the automatic loop.

        The stored run is left untouched; only a workflow_step_manual event is
        written.
        """
        input_data = input_data or {}
        run = await self.runs.get(run_id)
        graph = await self.graphs.load_workflow(run.workflow_id)
        resolved = graph.get_node(node_id)
        if resolved is None:
            raise NotFoundError("Node", node_id)

        result = await self._invoke(resolved, input_data)

        await self.events.record(WORKFLOW_STEP_MANUAL, {
            "node_id": node_id,
            "agent_name": resolved.agent.name,
            "input": input_data,
            "output": result.output,
            "output_intent": result.output_intent,
            "timestamp": _now(),
        }, run_id)

        return ManualStepResult(
            node_id=node_id,
            agent_name=resolved.agent.name,
            input=input_data,
            output=result.output,
            output_intent=result.output_intent,
        )
