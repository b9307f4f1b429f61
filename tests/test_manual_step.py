"""Tests for out-of-band single step execution."""

import pytest

from agentflow.errors import NotFoundError
from agentflow.models import Node
from agentflow.workflows.customer_service import seed_customer_service


@pytest.mark.asyncio
async def test_manual_step_leaves_run_untouched(harness):
    workflow = await seed_customer_service(harness.agents, harness.workflows, harness.registry)
    summary = await harness.engine.run_workflow(workflow.id, {"query": "balance?"})
    before = await harness.runs.get(summary.run_id)
    auth_node = workflow.nodes[1]

    result = await harness.engine.execute_step(summary.run_id, auth_node.id, {"user_id": "u-42"})

    assert result.node_id == auth_node.id
    assert result.agent_name == "AuthAgent"
    assert result.input == {"user_id": "u-42"}
    assert result.output["user_id"] == "u-42"
    assert result.output_intent == "need_balance_info"

    after = await harness.runs.get(summary.run_id)
    assert len(after.execution_path) == len(before.execution_path)
    assert after.status == before.status
    assert after.output_data == before.output_data


@pytest.mark.asyncio
async def test_manual_step_records_event(harness):
    workflow = await seed_customer_service(harness.agents, harness.workflows, harness.registry)
    summary = await harness.engine.run_workflow(workflow.id, {"query": "balance?"})

    await harness.engine.execute_step(summary.run_id, workflow.nodes[0].id, {"query": "again"})

    manual = harness.events.get_logs(event_type="workflow_step_manual", run_id=summary.run_id)
    assert len(manual) == 1
    assert manual[0].details["agent_name"] == "RouterAgent"
    assert manual[0].details["output_intent"] == "need_authentication"


@pytest.mark.asyncio
async def test_unknown_run(harness):
    with pytest.raises(NotFoundError):
        await harness.engine.execute_step("no-such-run", "node", {})


@pytest.mark.asyncio
async def test_node_from_another_workflow(harness):
    workflow = await seed_customer_service(harness.agents, harness.workflows, harness.registry)
    summary = await harness.engine.run_workflow(workflow.id, {})
    stranger = await harness.add_agent("Stranger", "x")
    other = await harness.add_workflow([Node(agent_id=stranger.id)], [], name="other")

    with pytest.raises(NotFoundError):
        await harness.engine.execute_step(summary.run_id, other.nodes[0].id, {})
