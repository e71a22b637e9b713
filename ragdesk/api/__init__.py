"""HTTP API layer: FastAPI routes, wire schemas and middleware."""

from ragdesk.api.routes import router

__all__ = ["router"]
