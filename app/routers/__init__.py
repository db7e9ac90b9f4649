# app/routers/__init__.py

from app.routers import health
from app.routers import validation

__all__ = ["health", "validation"]
