"""
API components

FastAPI routes and request/response models for the workflow engine.
"""

from .routes import router
from .services import Services, get_services

__all__ = ["router", "Services", "get_services"]
