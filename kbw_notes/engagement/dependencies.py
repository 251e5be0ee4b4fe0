"""FastAPI dependencies for engagement."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import EngagementService


async def get_engagement_service(request: Request) -> EngagementService:
    """Get engagement service from app state."""
    service = getattr(request.app.state, "engagement_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Engagement service not available",
        )
    return service


EngagementServiceDep = Annotated[EngagementService, Depends(get_engagement_service)]
