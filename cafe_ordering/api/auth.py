"""Admin API key authentication."""
import hashlib
import logging
import secrets
from typing import Optional

from fastapi import Header, HTTPException

from cafe_ordering.core.config import settings

logger = logging.getLogger(__name__)


def hash_key(key: str) -> str:
    """Hash a key so comparisons run on equal-length digests."""
    return hashlib.sha256(key.encode()).hexdigest()


def is_valid_admin_key(candidate: Optional[str]) -> bool:
    """Check a candidate key against the configured admin key."""
    if not settings.admin_api_key or not candidate:
        return False
    return secrets.compare_digest(hash_key(candidate), hash_key(settings.admin_api_key))


async def require_admin_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Dependency that rejects requests without a valid X-API-Key header."""
    if not is_valid_admin_key(x_api_key):
        logger.warning("[AUTH] Rejected admin request with missing or invalid X-API-Key")
        raise HTTPException(
            status_code=401,
            detail="No autorizado. Se requiere un encabezado X-API-Key válido.",
        )
