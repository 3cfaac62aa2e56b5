from __future__ import annotations

import secrets

from fastapi import Header, HTTPException, status

from core.config import get_settings


async def require_api_token(x_api_token: str = Header(..., alias="X-API-Token")) -> str:
    settings = get_settings()
    if not secrets.compare_digest(x_api_token.encode(), settings.security.api_token.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API token.")
    return x_api_token
