"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wanderlist.auth.tokens import decode_access_token
from wanderlist.dependencies import get_gateway
from wanderlist.gateway.base import PersistenceGateway
from wanderlist.session import SessionContext

_bearer = HTTPBearer()


async def get_current_session(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> SessionContext:
    """
    Verify the bearer token and build the caller's SessionContext.

    Raises 401 when the token is invalid or the profile does not exist.
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    profile = await gateway.get_one("profiles", {"id": payload["sub"]})
    if profile is None:
        raise HTTPException(status_code=401, detail="Profile not found")
    return SessionContext(user_id=profile["id"], display_name=profile.get("username"))
