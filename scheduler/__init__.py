"""
Scheduler package for the daily map version check.

This package contains:
- The fetch, compare, persist and notify check
- Email notifications
- The APScheduler-based daily scheduler
"""

__version__ = "1.0.0"
