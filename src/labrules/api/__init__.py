"""
REST API layer for labrules.

Provides a FastAPI application factory with typed endpoints that delegate
to the operations layer (``labrules.ops``).  All business logic lives in
ops; this package handles only HTTP transport concerns: serialisation,
error mapping and request context.

Quick start::

    from labrules.api import create_app

    app = create_app()  # ready for uvicorn
"""

from labrules.api.app import create_app

__all__ = ["create_app"]
