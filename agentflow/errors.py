class AgentFlowError(Exception):
    """Base class for all workflow engine errors"""


class NotFoundError(AgentFlowError):
    """Raised when a workflow, run, node, agent or tool id cannot be resolved."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class ValidationError(AgentFlowError):
    """Raised for definitions that cannot be stored, e.g. an edge to an unknown node."""


class NoEntryNodeError(AgentFlowError):
    """Raised when a workflow graph has no node the engine can start from."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"No starting node found in workflow {workflow_id}")


class ExecutorError(AgentFlowError):
    """Raised when a step executor fails to run an agent."""

    def __init__(self, agent_name: str, message: str):
        self.agent_name = agent_name
        super().__init__(message)


class WorkflowCancelledError(AgentFlowError):
    """Raised when a run's cancellation token is set between steps."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Workflow run {run_id} was cancelled")


class RunStateError(AgentFlowError):
    """Raised on an illegal run state transition, such as finalizing twice."""
