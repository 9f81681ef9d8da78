"""Disaster Tracking System (DTS) server."""

__version__ = "0.1.0"
