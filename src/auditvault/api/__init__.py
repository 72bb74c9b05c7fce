"""HTTP API for the audit trail and its retention lifecycle."""

from .app import create_app

__all__ = ["create_app"]
