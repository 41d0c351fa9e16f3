"""HTTP layer - FastAPI application and routes"""

from .app import configure_logging, create_app

__all__ = ["configure_logging", "create_app"]
