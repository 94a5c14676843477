"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dulpton.auth.jwt import verify_token
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger
from dulpton.ledger.errors import Unauthenticated

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    ledger: Ledger = Depends(get_ledger),
) -> User:
    """
    Extract and verify the bearer JWT, return the User.

    Raises Unauthenticated (401) when the token is missing, invalid, or
    refers to a user that no longer exists.
    """
    if credentials is None:
        raise Unauthenticated
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise Unauthenticated(str(e)) from e

    user = await ledger.store.get_user(int(payload["sub"]))
    if user is None:
        raise Unauthenticated("User not found")
    return user
