"""Bearer API key check for write endpoints."""

import secrets

from fastapi import HTTPException, Request, status

from bullion.logging import get_logger

logger = get_logger(__name__)


async def require_api_key(request: Request) -> None:
    """FastAPI dependency: reject requests without the configured API key.

    When no key is configured every write request is rejected.
    """
    expected = request.app.state.settings.api.api_key.get_secret_value()
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    token = header[len("Bearer "):]
    if not expected or not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning("api_key_rejected", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
