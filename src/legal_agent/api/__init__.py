"""
HTTP API for the legal agent.
"""

from .app import create_app

__all__ = ["create_app"]
