"""Health check endpoint."""
import logging

from fastapi import APIRouter, Depends, Request

from cafe_ordering.core.dependencies import get_session_registry
from cafe_ordering.services.call_session.registry import SessionRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request, registry: SessionRegistry = Depends(get_session_registry)):
    """Health check endpoint."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    return {"status": "healthy", "active_calls": len(registry)}
