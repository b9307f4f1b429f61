from typing import Any, Dict
from datetime import datetime
import uuid

from ..executors.behaviors import ScriptedBehavior
from ..executors.executor import ExecutorRegistry
from ..models import Agent, Edge, Node, NodeRole, Workflow
from ..storage.base import AgentRepository, WorkflowRepository

WORKFLOW_NAME = "Customer Service Workflow"


def route_request(agent: Agent, input_data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "message": "Routing request to authentication",
        "user_query": input_data.get("query") or input_data.get("message") or "User request",
        "routing_decision": "authenticate_user",
    }


def authenticate(agent: Agent, input_data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "message": "User authenticated successfully",
        "user_id": input_data.get("user_id", "user_123"),
        "authenticated": True,
        "session_token": f"session_{uuid.uuid4().hex[:12]}",
    }


def fetch_balance(agent: Agent, input_data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "message": "Balance retrieved successfully",
        "customer_id": input_data.get("user_id") or input_data.get("customer_id") or "user_123",
        "balance": 85.50,
        "currency": "USD",
        "last_updated": datetime.now().isoformat(),
    }


def finish(agent: Agent, input_data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "message": "Workflow completed successfully",
        "final_result": input_data,
        "completed_at": datetime.now().isoformat(),
    }


def build_agents() -> Dict[str, Agent]:
    """The four agents of the demo workflow, keyed by short name"""
    return {
        "router": Agent(
            name="RouterAgent",
            description="Routes incoming customer requests",
            system_prompt="You route customer requests to the right specialist.",
            model_name="simulated",
            input_intents=["user_query"],
            output_intents=["need_authentication"],
        ),
        "auth": Agent(
            name="AuthAgent",
            description="Authenticates customers",
            system_prompt="You verify the identity of the customer.",
            model_name="simulated",
            input_intents=["need_authentication"],
            output_intents=["need_balance_info"],
        ),
        "balance": Agent(
            name="PostpaidBalanceAgent",
            description="Looks up postpaid balances",
            system_prompt="You retrieve the postpaid balance of an authenticated customer.",
            model_name="simulated",
            input_intents=["need_balance_info"],
            output_intents=["workflow_complete"],
        ),
        "stop": Agent(
            name="StopAgent",
            description="Ends the conversation",
            system_prompt="You close the workflow.",
            model_name="simulated",
            input_intents=["workflow_complete"],
            output_intents=["workflow_end"],
        ),
    }


def create_customer_service_workflow(agents: Dict[str, Agent]) -> Workflow:
    """Create the Router -> Auth -> Balance -> Stop workflow"""

    roles = {"router": NodeRole.ENTRY, "stop": NodeRole.TERMINAL}
    nodes = {
        key: Node(agent_id=agent.id, role=roles.get(key, NodeRole.NORMAL), position={"x": 200 * i, "y": 0})
        for i, (key, agent) in enumerate(agents.items())
    }

    edges = [
        Edge(from_node_id=nodes["router"].id, to_node_id=nodes["auth"].id, trigger_intent="need_authentication"),
        Edge(from_node_id=nodes["auth"].id, to_node_id=nodes["balance"].id, trigger_intent="need_balance_info"),
        # workflow_complete already ends the run; the edge keeps the graph readable
        Edge(from_node_id=nodes["balance"].id, to_node_id=nodes["stop"].id, trigger_intent="workflow_complete"),
    ]

    return Workflow(
        name=WORKFLOW_NAME,
        description="Routes a customer query through authentication to a balance lookup",
        nodes=list(nodes.values()),
        edges=edges,
    )


def register_behaviors(registry: ExecutorRegistry, agents: Dict[str, Agent]) -> None:
    registry.register(agents["router"].id, ScriptedBehavior("need_authentication", route_request))
    registry.register(agents["auth"].id, ScriptedBehavior("need_balance_info", authenticate))
    registry.register(agents["balance"].id, ScriptedBehavior("workflow_complete", fetch_balance))
    registry.register(agents["stop"].id, ScriptedBehavior("workflow_end", finish))


async def seed_customer_service(agents_repo: AgentRepository, workflows_repo: WorkflowRepository,
                                registry: ExecutorRegistry) -> Workflow:
    """Store the demo agents and workflow and wire up their behaviours."""
    agents = build_agents()
    for agent in agents.values():
        await agents_repo.create(agent)
    register_behaviors(registry, agents)
    return await workflows_repo.create(create_customer_service_workflow(agents))
