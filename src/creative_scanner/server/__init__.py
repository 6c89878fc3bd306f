"""HTTP API for running scans and highlighting sheet cells."""

from .app import create_app

__all__ = ["create_app"]
