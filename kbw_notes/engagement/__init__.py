"""Likes and bookmarks on published posts."""

from .models import EngagementKind
from .service import EngagementService


__all__ = ["EngagementKind", "EngagementService"]
