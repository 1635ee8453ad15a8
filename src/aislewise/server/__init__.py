"""ASGI application factory and dependencies for the Aislewise server."""

from aislewise.server.app import app, create_app

__all__ = ["app", "create_app"]
