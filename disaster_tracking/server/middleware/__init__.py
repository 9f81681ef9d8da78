"""
Middleware modules for the DTS server.

This package contains custom middleware for request timing and logging.
"""

from .request_timing import RequestTimingMiddleware

__all__ = ["RequestTimingMiddleware"]
