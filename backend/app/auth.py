import secrets

from fastapi import Security, HTTPException, status
from fastapi.security import APIKeyHeader
from shared.config import settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)) -> str:
    """Reject the request unless it carries one of the configured dashboard keys."""
    if not api_key or not any(secrets.compare_digest(api_key, known) for known in settings.API_KEYS):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key"
        )
    return api_key
