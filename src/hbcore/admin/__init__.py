"""Admin API for the orchestration core."""

from .app import create_app, run_admin

__all__ = ["create_app", "run_admin"]
