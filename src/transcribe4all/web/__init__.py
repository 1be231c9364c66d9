"""FastAPI application exposing job submission and status routes."""

from transcribe4all.web.routes import create_app

__all__ = ["create_app"]
