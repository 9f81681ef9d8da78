"""
DTS Server Package.

This package contains the web server implementation for the Disaster Tracking System.
It includes the API definition, configuration, middleware and exception handling.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration and constants.
    services: Request-scoped dependencies (authentication, permissions).
"""
