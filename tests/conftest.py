"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration.
For database and seed utilities, see tests/__init__.py
"""

import os

# Tests must never pick up a developer's config.yaml database or Redis settings
os.environ.setdefault("LOSTFOUND_CONFIG", os.path.join(os.path.dirname(__file__), "config.test.yaml"))
os.environ.pop("EVENTS_BACKEND", None)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests that run against a SQLite database"
    )
