"""ASGI application factory and dependencies for the Mealmerge server."""

from mealmerge.server.app import app, create_app

__all__ = ["app", "create_app"]
