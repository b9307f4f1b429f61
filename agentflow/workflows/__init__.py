"""
Workflow definitions

Pre-built workflow definitions for demos and tests.
"""

from .customer_service import (
    WORKFLOW_NAME,
    build_agents,
    create_customer_service_workflow,
    register_behaviors,
    seed_customer_service
)

__all__ = [
    "WORKFLOW_NAME",
    "build_agents",
    "create_customer_service_workflow",
    "register_behaviors",
    "seed_customer_service"
]
