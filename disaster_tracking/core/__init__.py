"""
Core utilities and domain logic for the DTS server.

This package provides logging configuration, the database layer, form
validation and CSV handling, authentication helpers and domain services.
"""

from disaster_tracking.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
