"""Identity service client.

Resolves a bearer token to the caller's player UUID by asking the external
identity service (GET {IDENTITY_SERVICE_URL}/user). Sign-up, sign-in and token
issuance all live in that service; this app only verifies.
"""

import logging
import os
from typing import Optional
from uuid import UUID

import httpx

from courtside.services.errors import AuthError, InternalError

logger = logging.getLogger(__name__)


class IdentityClient:
    """
    Thin wrapper around the identity service's user lookup.

    Reads configuration from environment variables:
      - IDENTITY_SERVICE_URL
      - IDENTITY_TIMEOUT_SECONDS (default 5)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or os.getenv("IDENTITY_SERVICE_URL", "")).rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.getenv("IDENTITY_TIMEOUT_SECONDS", "5"))
        self._transport = transport
        if not self.base_url:
            logger.warning("IDENTITY_SERVICE_URL not configured; every authenticated request will be rejected.")

    def resolve_player_id(self, token: str) -> UUID:
        """
        Return the player UUID the token belongs to.

        Raises:
            AuthError: token missing, rejected, or response has no usable id
            InternalError: identity service unreachable or erroring
        """
        if not token:
            raise AuthError("Missing bearer token")
        if not self.base_url:
            raise AuthError("Identity service not configured")

        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                response = client.get("/user", headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as e:
            logger.error(f"Identity service request failed: {e}")
            raise InternalError("Identity service unavailable") from e

        if response.status_code in (401, 403):
            raise AuthError("Invalid authentication token")
        if response.status_code >= 400:
            logger.error(f"Identity service returned {response.status_code}")
            raise InternalError("Identity service error")

        try:
            return UUID(str(response.json()["id"]))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError("Invalid token payload") from e
