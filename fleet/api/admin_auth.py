"""Back-office authentication: shared admin API key."""

import hashlib
import hmac

from fastapi import HTTPException, Request

from fleet.config.settings import get_settings


def _hash_admin_key(api_key: str) -> str:
    """SHA-256 hash with salt so keys are compared as digests of equal length."""
    settings = get_settings()
    salted = f"{settings.admin_api_key_salt}:{api_key}"
    return hashlib.sha256(salted.encode()).hexdigest()


def require_admin(request: Request) -> None:
    """FastAPI dependency: validate the X-Admin-Key header."""
    settings = get_settings()
    if not settings.admin_api_key:
        raise HTTPException(status_code=503, detail="Admin access is not configured")

    api_key = request.headers.get("X-Admin-Key")
    if not api_key:
        raise HTTPException(status_code=401, detail="Admin key required (X-Admin-Key header)")

    # Constant-time comparison
    if not hmac.compare_digest(_hash_admin_key(api_key), _hash_admin_key(settings.admin_api_key)):
        raise HTTPException(status_code=401, detail="Invalid admin key")
