"""
Authentication dependencies for FastAPI routes.
"""

from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from courtside.services.errors import AuthError, CourtsideError, to_http_exception
from courtside.services.identity_client import IdentityClient

security = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_identity_client() -> IdentityClient:
    return IdentityClient()


def get_current_player_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityClient = Depends(get_identity_client),
) -> UUID:
    """
    Dependency resolving the caller's player id from the bearer token.

    Raises:
        HTTPException 401: no token, or the identity service rejected it
        HTTPException 500: identity service unavailable
    """
    try:
        if credentials is None:
            raise AuthError("Missing Authorization header")
        return identity.resolve_player_id(credentials.credentials)
    except CourtsideError as e:
        raise to_http_exception(e)
