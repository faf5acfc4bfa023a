"""REST API server package."""

from ken_assistant.server.app import create_app

__all__ = ["create_app"]
