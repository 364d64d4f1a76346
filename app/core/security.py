"""
Access Token Service

Issues and verifies the signed, time-limited access tokens the client
presents as ``Authorization: Bearer <token>``. Tokens are HS256 JWTs
(PyJWT) carrying at least the caller's email. There is no refresh flow;
the client asks POST /jwt for a new token once the old one expires.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

import jwt

from app.core.config import get_settings
from app.core.exceptions import InvalidArgument, Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Verified caller identity decoded from an access token."""
    email: str
    claims: dict[str, Any] = field(default_factory=dict)


class TokenService:
    """
    Sign and verify access tokens.

    Attributes:
        secret: HMAC signing secret
        algorithm: JWT algorithm (HS256 by default)
        expires_in: Token lifetime
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(hours=1),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    def issue(self, claims: dict[str, Any]) -> str:
        """
        Sign a token embedding the given identity claims.

        Raises:
            InvalidArgument: If the claims carry no email
        """
        email = claims.get("email")
        if not email or not isinstance(email, str):
            raise InvalidArgument("email is required to issue a token")

        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + self.expires_in,
        }
        logger.debug(f"Issuing access token for {email}")
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> Identity:
        """
        Decode a token and return the identity it asserts.

        Raises:
            Unauthenticated: Token absent, malformed, expired, badly signed
                or missing the email claim
        """
        if not token:
            raise Unauthenticated()

        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected expired access token")
            raise Unauthenticated()
        except jwt.PyJWTError as e:
            logger.debug(f"Rejected access token: {e}")
            raise Unauthenticated()

        email = claims.get("email")
        if not email:
            raise Unauthenticated()

        return Identity(email=email, claims=claims)


@lru_cache()
def get_token_service() -> TokenService:
    """Token service configured from settings (cached)."""
    settings = get_settings()
    return TokenService(
        secret=settings.access_token_secret,
        algorithm=settings.access_token_algorithm,
        expires_in=timedelta(minutes=settings.access_token_expire_minutes),
    )
