from typing import Optional, Tuple
import logging

from pydantic import BaseModel, ConfigDict

from ..errors import NoEntryNodeError
from ..models import Agent, Edge, Node, NodeRole, NodeType
from ..storage.base import AgentRepository, WorkflowRepository

logger = logging.getLogger(__name__)


class NodeConventions(BaseModel):
    """
    Rules for spotting entry and terminal nodes.

    Explicit ``role`` and ``node_type`` always count. The agent-name markers are
    only consulted when ``use_names`` is on, for graphs that never set a role.
    """
    model_config = ConfigDict(frozen=True)

    use_names: bool = True
    router_marker: str = "router"
    router_name: str = "routeragent"
    stop_marker: str = "stop"

    @classmethod
    def from_settings(cls, settings) -> "NodeConventions":
        return cls(
            use_names=settings.use_name_conventions,
            router_marker=settings.router_marker,
            router_name=settings.router_name,
            stop_marker=settings.stop_marker,
        )


class ResolvedNode(BaseModel):
    """A node together with the agent it is bound to"""
    model_config = ConfigDict(frozen=True)

    node: Node
    agent: Agent

    @property
    def id(self) -> str:
        return self.node.id


class GraphSnapshot(BaseModel):
    """Read-only view of a workflow used for a single run"""
    model_config = ConfigDict(frozen=True)

    workflow_id: str
    name: str
    nodes: Tuple[ResolvedNode, ...]
    edges: Tuple[Edge, ...]

    def get_node(self, node_id: str) -> Optional[ResolvedNode]:
        return next((n for n in self.nodes if n.node.id == node_id), None)

    def next_edge(self, node_id: str, intent: str) -> Optional[Edge]:
        """First edge, in insertion order, leaving node_id on intent."""
        return next(
            (e for e in self.edges if e.from_node_id == node_id and e.trigger_intent == intent),
            None,
        )

    def outgoing(self, node_id: str) -> Tuple[Edge, ...]:
        return tuple(e for e in self.edges if e.from_node_id == node_id)


def is_entry_node(resolved: ResolvedNode, conventions: NodeConventions) -> bool:
    node = resolved.node
    if node.role == NodeRole.ENTRY or node.node_type == NodeType.START:
        return True
    if not conventions.use_names:
        return False
    name = resolved.agent.name.lower()
    return conventions.router_marker in name or name == conventions.router_name


def is_terminal_node(resolved: ResolvedNode, conventions: NodeConventions) -> bool:
    node = resolved.node
    if node.role == NodeRole.TERMINAL or node.node_type == NodeType.END:
        return True
    return conventions.use_names and conventions.stop_marker in resolved.agent.name.lower()


def find_entry_node(snapshot: GraphSnapshot, conventions: NodeConventions) -> ResolvedNode:
    """Pick the first node in workflow order that qualifies as an entry point."""
    for resolved in snapshot.nodes:
        if is_entry_node(resolved, conventions):
            return resolved
    logger.warning(f"Workflow {snapshot.workflow_id} has no entry node")
    raise NoEntryNodeError(snapshot.workflow_id)


class GraphLoader:
    """Builds graph snapshots from the workflow and agent repositories."""

    def __init__(self, workflows: WorkflowRepository, agents: AgentRepository):
        self.workflows = workflows
        self.agents = agents

    async def load_workflow(self, workflow_id: str) -> GraphSnapshot:
        """
        Load a workflow with every node resolved to its agent.

        Raises NotFoundError for an unknown workflow or a node bound to a missing agent.
        """
        workflow = await self.workflows.get(workflow_id)
        nodes = []
        for node in workflow.nodes:
            agent = await self.agents.get(node.agent_id)
            nodes.append(ResolvedNode(node=node, agent=agent))
        return GraphSnapshot(
            workflow_id=workflow.id,
            name=workflow.name,
            nodes=tuple(nodes),
            edges=tuple(workflow.edges),
        )
