"""
Middleware Package
==================

Starlette middleware applied to the directory API.
"""

from .security import SecurityHeadersMiddleware

__all__ = ["SecurityHeadersMiddleware"]
