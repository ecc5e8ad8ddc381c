"""
TaskFlow REST API

FastAPI application serving the TaskFlow services over JSON.
"""

__version__ = "0.1.0"

from taskflow_api.app import create_app

__all__ = ["create_app"]
