"""
Verification tokens for inbound push requests.

Tokens are HS256 JWTs signed with the cloudenvoy secret. The backend appends
one to the webhook URL when registering subscriptions, and the push handler
checks it before dispatching a delivery.
"""

from typing import Any, Dict, Optional

import jwt

from cloudenvoy.config import Config, get_config
from cloudenvoy.errors import AuthenticationError

JWT_ALGORITHM = "HS256"


class Authenticator:
    """Signs and verifies webhook verification tokens."""

    def __init__(self, config: Optional[Config] = None):
        self._config = config

    @property
    def config(self) -> Config:
        return self._config or get_config()

    def verification_token(self, claims: Optional[Dict[str, Any]] = None) -> str:
        """Return a signed token carrying the given claims."""
        return jwt.encode(dict(claims or {}), self.config.secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: Optional[str]) -> bool:
        """Return True if the token was signed with the configured secret."""
        if not token:
            return False
        try:
            jwt.decode(token, self.config.secret, algorithms=[JWT_ALGORITHM])
        except jwt.InvalidTokenError:
            return False
        return True

    def verify_or_raise(self, token: Optional[str]) -> bool:
        """Like verify, but raise AuthenticationError for a missing or bad token."""
        if not token:
            raise AuthenticationError("Missing verification token")
        if not self.verify(token):
            raise AuthenticationError("Invalid verification token")
        return True
