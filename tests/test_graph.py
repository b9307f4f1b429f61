"""Tests for graph snapshots, entry/terminal detection and edge lookup."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from agentflow.engine.graph import (
    GraphLoader, GraphSnapshot, NodeConventions, ResolvedNode,
    find_entry_node, is_entry_node, is_terminal_node,
)
from agentflow.errors import NoEntryNodeError, NotFoundError
from agentflow.models import Agent, Edge, Node, NodeRole, NodeType, Workflow
from agentflow.storage.memory import InMemoryAgentRepository, InMemoryWorkflowRepository


def resolved(name, **node_fields):
    agent = Agent(name=name, system_prompt="p", model_name="m")
    return ResolvedNode(node=Node(agent_id=agent.id, **node_fields), agent=agent)


def snapshot(nodes, edges=()):
    return GraphSnapshot(workflow_id="wf", name="wf", nodes=tuple(nodes), edges=tuple(edges))


CONVENTIONS = NodeConventions()
EXPLICIT_ONLY = NodeConventions(use_names=False)


class TestEntryNode:

    def test_explicit_role_wins_regardless_of_name(self):
        assert is_entry_node(resolved("Worker", role=NodeRole.ENTRY), EXPLICIT_ONLY)

    def test_start_node_type(self):
        assert is_entry_node(resolved("Worker", node_type=NodeType.START), EXPLICIT_ONLY)

    @pytest.mark.parametrize("name", ["RouterAgent", "routeragent", "MainRouter", "ROUTER"])
    def test_router_name_convention(self, name):
        assert is_entry_node(resolved(name), CONVENTIONS)

    def test_name_convention_can_be_disabled(self):
        assert not is_entry_node(resolved("RouterAgent"), EXPLICIT_ONLY)

    def test_first_qualifying_node_in_order(self):
        nodes = [resolved("Worker"), resolved("RouterA"), resolved("RouterB")]

        assert find_entry_node(snapshot(nodes), CONVENTIONS).agent.name == "RouterA"

    def test_no_entry_node(self):
        with pytest.raises(NoEntryNodeError):
            find_entry_node(snapshot([resolved("Worker"), resolved("Other")]), CONVENTIONS)

    def test_no_entry_node_without_conventions(self):
        with pytest.raises(NoEntryNodeError):
            find_entry_node(snapshot([resolved("RouterAgent")]), EXPLICIT_ONLY)


class TestTerminalNode:

    def test_end_type_and_terminal_role(self):
        assert is_terminal_node(resolved("Worker", node_type=NodeType.END), EXPLICIT_ONLY)
        assert is_terminal_node(resolved("Worker", role=NodeRole.TERMINAL), EXPLICIT_ONLY)

    def test_stop_name_convention(self):
        assert is_terminal_node(resolved("StopAgent"), CONVENTIONS)
        assert not is_terminal_node(resolved("StopAgent"), EXPLICIT_ONLY)

    def test_regular_node(self):
        assert not is_terminal_node(resolved("Worker"), CONVENTIONS)


class TestEdgeLookup:

    def test_first_match_wins_and_is_stable(self):
        a, b, c = resolved("A"), resolved("B"), resolved("C")
        edges = [
            Edge(from_node_id=a.id, to_node_id=b.id, trigger_intent="go"),
            Edge(from_node_id=a.id, to_node_id=c.id, trigger_intent="go"),
        ]
        graph = snapshot([a, b, c], edges)

        for _ in range(5):
            assert graph.next_edge(a.id, "go").to_node_id == b.id

    def test_intent_and_source_must_both_match(self):
        a, b = resolved("A"), resolved("B")
        graph = snapshot([a, b], [Edge(from_node_id=a.id, to_node_id=b.id, trigger_intent="go")])

        assert graph.next_edge(a.id, "stay") is None
        assert graph.next_edge(b.id, "go") is None
        assert len(graph.outgoing(a.id)) == 1

    def test_snapshot_is_frozen(self):
        graph = snapshot([resolved("A")])
        with pytest.raises(PydanticValidationError):
            graph.name = "changed"


class TestGraphLoader:

    @pytest.mark.asyncio
    async def test_resolves_agents_in_node_order(self):
        agents, workflows = InMemoryAgentRepository(), InMemoryWorkflowRepository()
        first = await agents.create(Agent(name="First", system_prompt="p", model_name="m"))
        second = await agents.create(Agent(name="Second", system_prompt="p", model_name="m"))
        workflow = await workflows.create(Workflow(
            name="wf", nodes=[Node(agent_id=second.id), Node(agent_id=first.id)], edges=[]
        ))

        graph = await GraphLoader(workflows, agents).load_workflow(workflow.id)

        assert [n.agent.name for n in graph.nodes] == ["Second", "First"]
        assert all(n.node.workflow_id == workflow.id for n in graph.nodes)

    @pytest.mark.asyncio
    async def test_unknown_workflow_or_agent(self):
        agents, workflows = InMemoryAgentRepository(), InMemoryWorkflowRepository()
        loader = GraphLoader(workflows, agents)
        with pytest.raises(NotFoundError):
            await loader.load_workflow("missing")

        workflow = await workflows.create(Workflow(name="wf", nodes=[Node(agent_id="ghost")], edges=[]))
        with pytest.raises(NotFoundError):
            await loader.load_workflow(workflow.id)
