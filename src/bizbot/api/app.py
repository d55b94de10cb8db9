"""ASGI entry point, configured from the environment."""

from .factory import create_app

app = create_app()
