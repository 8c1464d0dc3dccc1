import hmac
from typing import Optional

from fastapi import Header, Query, Request

from mediavault.error_handling import AuthError


def key_matches(provided: Optional[str], expected: str) -> bool:
    if not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
    key: Optional[str] = Query(default=None),
) -> None:
    """FastAPI dependency guarding write, delete and stats routes."""
    config = request.app.state.config
    if not key_matches(x_api_key or key, config.api_key):
        raise AuthError()
