"""API route handlers."""

from .matches import router as matches_router
from .handoff import router as handoff_router
