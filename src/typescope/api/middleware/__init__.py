"""ASGI middleware for the TypeScope API."""
