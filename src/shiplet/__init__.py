"""
Shiplet - Signup backend

A FastAPI service that stores business and space-provider signups in
MongoDB and serves them back to the Shiplet team.
"""

__version__ = "0.1.0"

from .main import app

__all__ = ["app"]
