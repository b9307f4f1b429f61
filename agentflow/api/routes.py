from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from typing import Dict, Any, List, Optional
from pydantic import BaseModel
import json

from ..errors import NotFoundError, ValidationError
from ..models import (
    Agent, Edge, LogEvent, ManualStepResult, Node, RunSummary, StepResult, Tool, Workflow, WorkflowRun
)
from .services import Services, get_services

router = APIRouter()


# Request/Response models
class CreateAgentRequest(BaseModel):
    name: str
    description: str = ""
    system_prompt: str
    model_name: str
    input_intents: List[str] = []
    output_intents: List[str] = []
    tool_id: Optional[str] = None
    is_active: bool = True


class UpdateAgentRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    system_prompt: Optional[str] = None
    model_name: Optional[str] = None
    input_intents: Optional[List[str]] = None
    output_intents: Optional[List[str]] = None
    tool_id: Optional[str] = None
    is_active: Optional[bool] = None


class CreateWorkflowRequest(BaseModel):
    name: str
    description: str = ""
    nodes: List[Node]
    edges: List[Edge]
    is_active: bool = True


class RunWorkflowRequest(BaseModel):
    workflow_id: str
    input: Dict[str, Any] = {}


class StepRequest(BaseModel):
    run_id: str
    node_id: str
    input: Dict[str, Any] = {}


class CreateToolRequest(BaseModel):
    name: str
    description: str = ""
    parameters: Dict[str, Any] = {}
    is_active: bool = True


class UpdateToolRequest(BaseModel):
    description: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class CreateLogRequest(BaseModel):
    event_type: str
    details: Dict[str, Any] = {}
    workflow_run_id: Optional[str] = None


# Agents

@router.post("/agents", response_model=Agent, status_code=201)
async def create_agent(request: CreateAgentRequest, services: Services = Depends(get_services)):
    """Create an agent that workflow nodes can bind to"""
    if request.tool_id:
        services.tools.describe(request.tool_id)
    return await services.agents.create(Agent(**request.model_dump()))


@router.get("/agents", response_model=List[Agent])
async def list_agents(services: Services = Depends(get_services)):
    return await services.agents.list()


@router.get("/agents/by-intent/{intent}", response_model=List[Agent])
async def find_agents_by_intent(intent: str, services: Services = Depends(get_services)):
    """Active agents that accept the given input intent"""
    return await services.agents.find_by_intent(intent)


@router.get("/agents/{agent_id}", response_model=Agent)
async def get_agent(agent_id: str, services: Services = Depends(get_services)):
    return await services.agents.get(agent_id)


@router.put("/agents/{agent_id}", response_model=Agent)
async def update_agent(agent_id: str, request: UpdateAgentRequest, services: Services = Depends(get_services)):
    changes = request.model_dump(exclude_unset=True)
    if changes.get("tool_id"):
        services.tools.describe(changes["tool_id"])
    return await services.agents.update(agent_id, changes)


@router.delete("/agents/{agent_id}", status_code=204)
async def delete_agent(agent_id: str, services: Services = Depends(get_services)):
    await services.agents.delete(agent_id)
    services.registry.unregister(agent_id)


@router.post("/agents/{agent_id}/execute", response_model=StepResult)
async def execute_agent(agent_id: str, params: Dict[str, Any], services: Services = Depends(get_services)):
    """Run one agent directly, outside of any workflow"""
    agent = await services.agents.get(agent_id)
    return await services.executor.execute(agent, params)


# Tools

@router.get("/tools", response_model=List[Tool])
async def list_tools(services: Services = Depends(get_services)):
    return [services.tools.describe(name) for name in services.tools.list_tools()]


@router.post("/tools", response_model=Tool, status_code=201)
async def create_tool(request: CreateToolRequest, services: Services = Depends(get_services)):
    """Define a tool without an implementation; executing it returns a generic result"""
    return services.tools.create(Tool(id=request.name, **request.model_dump()))


@router.post("/tools/register-builtin")
async def register_builtin_tools(services: Services = Depends(get_services)):
    added = services.tools.register_builtin()
    return {"message": "Builtin tools registered successfully", "tools": added}


@router.get("/tools/{name}", response_model=Tool)
async def get_tool(name: str, services: Services = Depends(get_services)):
    return services.tools.describe(name)


@router.put("/tools/{name}", response_model=Tool)
async def update_tool(name: str, request: UpdateToolRequest, services: Services = Depends(get_services)):
    return services.tools.update(name, request.model_dump(exclude_unset=True))


@router.delete("/tools/{name}", status_code=204)
async def delete_tool(name: str, services: Services = Depends(get_services)):
    services.tools.delete(name)


@router.post("/tools/{name}/execute")
async def execute_tool(name: str, params: Dict[str, Any], services: Services = Depends(get_services)):
    """Run a tool directly, outside of any workflow"""
    return await services.tools.execute(name, params)


# Workflows

@router.post("/workflows", response_model=Workflow, status_code=201)
async def create_workflow(request: CreateWorkflowRequest, services: Services = Depends(get_services)):
    """
    Create a workflow graph.

    Every node must reference an existing agent and every edge must connect
    two nodes of this workflow.
    """
    for node in request.nodes:
        try:
            await services.agents.get(node.agent_id)
        except NotFoundError:
            raise ValidationError(f"Node {node.id} references unknown agent {node.agent_id}") from None
    workflow = Workflow(
        name=request.name,
        description=request.description,
        nodes=request.nodes,
        edges=request.edges,
        is_active=request.is_active,
    )
    return await services.workflows.create(workflow)


@router.get("/workflows", response_model=List[Workflow])
async def list_workflows(name: Optional[str] = None, services: Services = Depends(get_services)):
    return await services.workflows.list(name=name)


@router.post("/workflows/run", response_model=RunSummary)
async def run_workflow(request: RunWorkflowRequest, services: Services = Depends(get_services)):
    """Start a workflow and wait for it to finish"""
    return await services.engine.run_workflow(request.workflow_id, request.input)


@router.post("/workflows/step", response_model=ManualStepResult)
async def execute_step(request: StepRequest, services: Services = Depends(get_services)):
    """Execute one node of an existing run without changing the run"""
    return await services.engine.execute_step(request.run_id, request.node_id, request.input)


@router.get("/workflows/runs/{run_id}", response_model=WorkflowRun)
async def get_workflow_run(run_id: str, services: Services = Depends(get_services)):
    return await services.runs.get(run_id)


@router.get("/workflows/{workflow_id}", response_model=Workflow)
async def get_workflow(workflow_id: str, services: Services = Depends(get_services)):
    return await services.workflows.get(workflow_id)


@router.get("/workflows/{workflow_id}/runs", response_model=List[WorkflowRun])
async def list_workflow_runs(workflow_id: str, services: Services = Depends(get_services)):
    await services.workflows.get(workflow_id)
    return await services.runs.list_for_workflow(workflow_id)


# Logs

@router.get("/logs", response_model=List[LogEvent])
async def get_logs(
    event_type: Optional[str] = None,
    run_id: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    services: Services = Depends(get_services),
):
    return services.events.get_logs(event_type=event_type, run_id=run_id, limit=limit)


@router.post("/logs", response_model=LogEvent, status_code=201)
async def create_log(request: CreateLogRequest, services: Services = Depends(get_services)):
    """Append an event to the log, e.g. from an external agent runtime"""
    return await services.events.record(request.event_type, request.details, request.workflow_run_id)


@router.get("/logs/event-type/{event_type}", response_model=List[LogEvent])
async def get_logs_by_event_type(
    event_type: str,
    limit: int = Query(100, ge=1),
    services: Services = Depends(get_services),
):
    return services.events.get_logs_by_event_type(event_type, limit)


@router.get("/logs/stats")
async def get_log_stats(services: Services = Depends(get_services)):
    """Event counts per type for the last 24 hours"""
    return services.events.get_log_stats()


@router.get("/logs/run/{run_id}", response_model=List[LogEvent])
async def get_run_logs(run_id: str, services: Services = Depends(get_services)):
    return services.events.get_run_logs(run_id)


@router.delete("/logs/cleanup")
async def cleanup_logs(days: Optional[int] = Query(None, ge=0), services: Services = Depends(get_services)):
    days_old = days if days is not None else services.settings.log_retention_days
    removed = await services.events.delete_old_logs(days_old)
    return {"deleted": removed, "days": days_old}


@router.websocket("/ws/runs/{run_id}")
async def stream_run_events(websocket: WebSocket, run_id: str):
    """WebSocket endpoint streaming the events of one run as they are recorded"""
    services: Services = websocket.app.state.services
    await websocket.accept()

    try:
        await websocket.send_text(json.dumps({
            "type": "connected",
            "message": f"Connected to workflow run {run_id}",
            "run_id": run_id
        }))

        await services.broadcaster.attach(run_id, websocket, lambda: services.events.get_run_logs(run_id))

        try:
            run = await services.runs.get(run_id)
        except NotFoundError:
            run = None

        if run is not None:
            await websocket.send_text(json.dumps({
                "type": "status",
                "run_id": run_id,
                "status": run.status.value,
            }))
        else:
            await websocket.send_text(json.dumps({
                "type": "waiting",
                "message": f"Waiting for workflow run {run_id} to start..."
            }))

        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({"type": "error", "message": "Invalid JSON"}))
                continue
            if message.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))

    except WebSocketDisconnect:
        pass
    finally:
        services.broadcaster.remove_connection(run_id, websocket)
