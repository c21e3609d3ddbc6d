"""Routers package."""

from . import budget, clients, dashboard, deliverables, health, projects

__all__ = [
    "budget",
    "clients",
    "dashboard",
    "deliverables",
    "health",
    "projects",
]
