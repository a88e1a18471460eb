"""Bearer-token guard for the admin HTTP API.

The key and the debug flag come from the ``Settings`` the app was built
with (``app.state.config``), never from the process-wide settings:

  ADMIN_API_KEY set, token matches    → allow
  ADMIN_API_KEY set, token bad/absent → 401 Unauthorized
  ADMIN_API_KEY empty, DEBUG=true     → allow
  ADMIN_API_KEY empty, DEBUG=false    → 403 Forbidden

Telegram customers never pass through here; the bot trusts chat identity.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from barbershop.config import Settings

log = logging.getLogger("barbershop.auth")

_bearer_scheme = HTTPBearer(auto_error=False)


def token_matches(credentials: HTTPAuthorizationCredentials | None, key: str) -> bool:
    if credentials is None:
        return False
    return secrets.compare_digest(credentials.credentials.encode(), key.encode())


async def require_admin_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> None:
    """FastAPI dependency: reject admin calls without the app's bearer token."""
    config: Settings = request.app.state.config

    if not config.admin_api_key:
        if config.debug:
            return
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin API key not configured. Set ADMIN_API_KEY in .env.",
        )

    if not token_matches(credentials, config.admin_api_key):
        client = request.client.host if request.client else "?"
        log.warning("Rejected admin request from %s", client)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
