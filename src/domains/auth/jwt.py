# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access token handling with python-jose.

Tokens are minted by the upstream auth service. The roster API only reads
them: the subject is the acting user id, and the permission list decides
who may move students between classes. create_access_token exists so that
local tooling and tests can mint tokens signed with the same settings.

Example:
    >>> manager = JWTManager(get_settings().jwt)
    >>> token = manager.create_access_token(user_id, permissions=["classes.transfer"])
    >>> str(manager.decode_token(token).sub) == str(user_id)
    True
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal
from uuid import UUID

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


class TokenPayload(BaseModel):
    """Claims of an access token.

    Attributes:
        sub: Id of the user the token was issued to. Any UUID spelling is
            accepted; str(sub) is the lowercase hyphenated form.
        type: Always "access" for tokens this API accepts.
        user_type: Kind of account (teacher, registrar, admin).
        roles: Role codes.
        permissions: Permission codes, e.g. "classes.transfer".
        exp: Expiry as a unix timestamp.
        iat: Issue time as a unix timestamp.
        jti: Unique token id.
    """

    sub: UUID
    type: Literal["access"]
    user_type: str | None = None
    roles: list[str] = []
    permissions: list[str] = []
    exp: int
    iat: int
    jti: str


class JWTError(Exception):
    """Base exception for token failures."""


class TokenExpiredError(JWTError):
    """The token's exp claim is in the past."""


class InvalidTokenError(JWTError):
    """The token is malformed, badly signed or carries the wrong claims."""


class JWTManager:
    """Signs and verifies access tokens with the configured key."""

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def _key(self) -> str:
        return self._settings.secret_key.get_secret_value()

    def create_access_token(
        self,
        user_id: str | UUID,
        user_type: str | None = None,
        roles: list[str] | None = None,
        permissions: list[str] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Mint a signed access token.

        Args:
            user_id: Subject of the token.
            user_type: Kind of account.
            roles: Role codes to embed.
            permissions: Permission codes to embed.
            expires_delta: Lifetime; defaults to access_token_expire_minutes.

        Returns:
            Encoded token.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self._settings.access_token_expire_minutes)
        issued_at = datetime.now(timezone.utc)

        claims = {
            "sub": str(user_id),
            "type": ACCESS_TOKEN_TYPE,
            "user_type": user_type,
            "roles": roles or [],
            "permissions": permissions or [],
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + expires_delta).timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(claims, self._key, algorithm=self._settings.algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """Verify a token's signature and expiry and return its claims.

        Raises:
            TokenExpiredError: The token has expired.
            InvalidTokenError: The token cannot be verified, is not an
                access token, or lacks required claims.
        """
        try:
            claims = jwt.decode(token, self._key, algorithms=[self._settings.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JoseJWTError as e:
            logger.warning("Token verification failed: %s", e)
            raise InvalidTokenError(f"Invalid token: {e}")

        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError(f"Expected an access token, got {claims.get('type')!r}")

        try:
            return TokenPayload.model_validate(claims)
        except ValidationError as e:
            raise InvalidTokenError(f"Invalid token claims: {e}")
