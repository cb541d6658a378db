"""
FastAPI read API for the TomTom map version monitor.

This module provides:
- HTML summary and API index pages
- JSON endpoints for the current version and the change history
"""
