from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agentflow.api.routes import router
from agentflow.api.services import Services
from agentflow.config import Settings, settings as default_settings
from agentflow.errors import (
    AgentFlowError, ExecutorError, NoEntryNodeError, NotFoundError,
    RunStateError, ValidationError, WorkflowCancelledError
)
from agentflow.workflows.customer_service import seed_customer_service

logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFoundError: 404,
    NoEntryNodeError: 400,
    ValidationError: 400,
    RunStateError: 409,
    ExecutorError: 500,
    WorkflowCancelledError: 500,
}


async def agentflow_error_handler(request: Request, exc: AgentFlowError) -> JSONResponse:
    """Translate engine errors into HTTP responses"""
    status_code = next((code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "message": str(exc)},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.seed_demo_workflow:
            services: Services = app.state.services
            workflow = await seed_customer_service(services.agents, services.workflows, services.registry)
            logger.info(f"Seeded '{workflow.name}' as {workflow.id}")
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Agent workflow engine routing steps through intent-labeled graphs",
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.services = Services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AgentFlowError, agentflow_error_handler)
    app.include_router(router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": settings.app_name,
            "version": settings.version,
            "docs": "/docs",
            "endpoints": {
                "agents": "GET|POST /api/agents",
                "execute_agent": "POST /api/agents/{agent_id}/execute",
                "tools": "GET|POST /api/tools",
                "workflows": "GET|POST /api/workflows",
                "run_workflow": "POST /api/workflows/run",
                "execute_step": "POST /api/workflows/step",
                "get_run": "GET /api/workflows/runs/{run_id}",
                "logs": "GET /api/logs",
                "log_stats": "GET /api/logs/stats",
                "stream_run": "WS /api/ws/runs/{run_id}"
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "active_websockets": app.state.services.broadcaster.connection_count()}

    return app


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging(default_settings)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
