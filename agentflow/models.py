from typing import Dict, Any, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
import uuid
from datetime import datetime


def new_id() -> str:
    return str(uuid.uuid4())


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Termination(str, Enum):
    """Why a run stopped. Dead ends are persisted as completed runs."""
    COMPLETED = "completed"
    ABORTED = "aborted"
    STEP_LIMIT = "step_limit"
    FAILED = "failed"


class NodeType(str, Enum):
    AGENT = "agent"
    START = "start"
    END = "end"


class NodeRole(str, Enum):
    ENTRY = "entry"
    NORMAL = "normal"
    TERMINAL = "terminal"


class Agent(BaseModel):
    """An agent definition; nodes bind to agents by id"""
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    system_prompt: str
    model_name: str
    input_intents: List[str] = []
    output_intents: List[str] = []
    tool_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class Tool(BaseModel):
    """Metadata for a registered tool"""
    id: str
    name: str
    description: str = ""
    parameters: Dict[str, Any] = {}
    is_active: bool = True


class Node(BaseModel):
    """A workflow node bound to an agent"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    workflow_id: Optional[str] = None
    agent_id: str
    node_type: NodeType = NodeType.AGENT
    role: NodeRole = NodeRole.NORMAL
    position: Dict[str, Any] = Field(default_factory=lambda: {"x": 0, "y": 0})


class Edge(BaseModel):
    """Labeled transition; first edge matching (from_node_id, trigger_intent) wins"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    workflow_id: Optional[str] = None
    from_node_id: str
    to_node_id: str
    trigger_intent: str
    condition: Optional[Dict[str, Any]] = None


class Workflow(BaseModel):
    """Complete workflow graph definition"""
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    nodes: List[Node]
    edges: List[Edge]
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class StepResult(BaseModel):
    """What a step executor hands back for one node"""
    output: Dict[str, Any] = {}
    output_intent: str


class StepRecord(BaseModel):
    """One executed step of a run"""
    model_config = ConfigDict(frozen=True)

    step: int
    node_id: str
    agent_id: str
    agent_name: str
    input: Dict[str, Any]
    output: Dict[str, Any]
    output_intent: str
    timestamp: datetime


class WorkflowRun(BaseModel):
    """Stored information for a workflow execution"""
    id: str = Field(default_factory=new_id)
    workflow_id: str
    status: RunStatus = RunStatus.PENDING
    input_data: Dict[str, Any] = {}
    output_data: Optional[Dict[str, Any]] = None
    execution_path: List[StepRecord] = []
    error_message: Optional[str] = None
    termination: Optional[Termination] = None
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.FAILED)


class RunUpdate(BaseModel):
    """The single terminal write applied to a run"""
    status: RunStatus
    output_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    execution_path: Tuple[StepRecord, ...] = ()
    termination: Termination
    completed_at: datetime = Field(default_factory=datetime.now)


class RunSummary(BaseModel):
    run_id: str
    status: RunStatus
    execution_path: List[StepRecord]
    final_output: Dict[str, Any]
    total_steps: int
    termination: Termination


class ManualStepResult(BaseModel):
    node_id: str
    agent_name: str
    input: Dict[str, Any]
    output: Dict[str, Any]
    output_intent: str


class LogEvent(BaseModel):
    """Structured event written to an event sink"""
    id: str = Field(default_factory=new_id)
    event_type: str
    details: Dict[str, Any] = {}
    workflow_run_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
