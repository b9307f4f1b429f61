from typing import Any, Dict, List, Tuple
from datetime import datetime
import asyncio

from ..errors import RunStateError
from ..models import (
    RunStatus, RunUpdate, StepRecord, StepResult, Termination, WorkflowRun
)
from ..storage.base import RunRepository
from .graph import ResolvedNode


class RunTracker:
    """
    Bookkeeping for a single execution attempt.

    Steps accumulate in memory and reach the repository in exactly one
    terminal write, made through finalize(). A second finalize raises
    RunStateError.
    """

    def __init__(self, runs: RunRepository, run: WorkflowRun):
        self.runs = runs
        self.run = run
        self._path: List[StepRecord] = []
        self._lock = asyncio.Lock()
        self._finalized = False

    @classmethod
    async def start(cls, runs: RunRepository, workflow_id: str, input_data: Dict[str, Any]) -> "RunTracker":
        run = await runs.create(workflow_id, input_data)
        return cls(runs, run)

    @property
    def run_id(self) -> str:
        return self.run.id

    @property
    def execution_path(self) -> Tuple[StepRecord, ...]:
        return tuple(self._path)

    @property
    def step_count(self) -> int:
        return len(self._path)

    @property
    def last_output(self) -> Dict[str, Any]:
        return self._path[-1].output if self._path else {}

    @property
    def finalized(self) -> bool:
        return self._finalized

    def record_step(self, resolved: ResolvedNode, input_data: Dict[str, Any], result: StepResult) -> StepRecord:
        if self._finalized:
            raise RunStateError(f"Workflow run {self.run_id} is already finalized")
        record = StepRecord(
            step=len(self._path) + 1,
            node_id=resolved.node.id,
            agent_id=resolved.agent.id,
            agent_name=resolved.agent.name,
            input=input_data,
            output=result.output,
            output_intent=result.output_intent,
            timestamp=datetime.now(),
        )
        self._path.append(record)
        return record

    async def complete(self, output: Dict[str, Any], termination: Termination) -> WorkflowRun:
        return await self.finalize(RunUpdate(
            status=RunStatus.COMPLETED,
            output_data=output,
            execution_path=self.execution_path,
            termination=termination,
        ))

    async def fail(self, error_message: str) -> WorkflowRun:
        return await self.finalize(RunUpdate(
            status=RunStatus.FAILED,
            error_message=error_message,
            execution_path=self.execution_path,
            termination=Termination.FAILED,
        ))

    async def finalize(self, update: RunUpdate) -> WorkflowRun:
        # Held across the write: a failed write leaves the tracker open for fail()
        async with self._lock:
            if self._finalized:
                raise RunStateError(f"Workflow run {self.run_id} is already finalized")
            self.run = await self.runs.finalize(self.run_id, update)
            self._finalized = True
        return self.run
