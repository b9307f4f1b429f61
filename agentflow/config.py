"""
Application settings

Values come from the environment (prefix ``AGENTFLOW_``) or a local ``.env`` file.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Workflow engine configuration"""

    model_config = SettingsConfigDict(env_prefix="AGENTFLOW_", env_file=".env", extra="ignore")

    app_name: str = "AgentFlow Workflow Engine"
    version: str = "1.0.0"

    # Engine policy
    max_steps: int = 10
    completion_intents: List[str] = ["workflow_complete", "workflow_end"]
    use_name_conventions: bool = True
    router_marker: str = "router"
    router_name: str = "routeragent"
    stop_marker: str = "stop"

    # Event log
    log_level: str = "INFO"
    log_retention_days: int = 30

    # Server
    seed_demo_workflow: bool = True
    host: str = "0.0.0.0"
    port: int = 8000


# Default configuration instance
settings = Settings()
