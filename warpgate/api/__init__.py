"""Webhook API."""

from .server import app, service_state

__all__ = ["app", "service_state"]
