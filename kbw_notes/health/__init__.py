"""Health check endpoints."""

from kbw_notes.health.router import router


__all__ = ["router"]
