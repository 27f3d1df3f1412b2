# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for access token handling."""

import time
from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from jose import jwt
from pydantic import SecretStr

from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)

SECRET = "test-secret-key-for-jwt-testing"


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr(SECRET)
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


def sign(claims: dict) -> str:
    return jwt.encode(claims, SECRET, algorithm="HS256")


class TestJWTManager:
    """Tests for JWTManager."""

    def test_decode_returns_claims(self, jwt_manager: JWTManager) -> None:
        """Test that a minted token decodes to the same claims."""
        user_id = str(uuid4())
        token = jwt_manager.create_access_token(
            user_id=user_id,
            user_type="teacher",
            roles=["teacher", "registrar"],
            permissions=["classes.transfer", "classes.view"],
        )

        payload = jwt_manager.decode_token(token)

        assert isinstance(payload, TokenPayload)
        assert str(payload.sub) == user_id
        assert payload.type == "access"
        assert payload.user_type == "teacher"
        assert payload.roles == ["teacher", "registrar"]
        assert "classes.transfer" in payload.permissions
        assert payload.exp - payload.iat == 30 * 60

    def test_uuid_user_id_round_trips(self, jwt_manager: JWTManager) -> None:
        user_id = uuid4()

        payload = jwt_manager.decode_token(jwt_manager.create_access_token(user_id=user_id))

        assert payload.sub == user_id

    def test_subject_is_normalized(self, jwt_manager: JWTManager) -> None:
        """Test that uppercase or unhyphenated subjects decode to one form."""
        user_id = uuid4()

        upper = jwt_manager.decode_token(
            jwt_manager.create_access_token(user_id=str(user_id).upper())
        )
        bare = jwt_manager.decode_token(jwt_manager.create_access_token(user_id=user_id.hex))

        assert str(upper.sub) == str(user_id)
        assert str(bare.sub) == str(user_id)

    def test_non_uuid_subject_rejected(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(user_id="admin")

        with pytest.raises(InvalidTokenError, match="Invalid token claims"):
            jwt_manager.decode_token(token)

    def test_non_access_token_rejected(self, jwt_manager: JWTManager) -> None:
        """Test that tokens of another type are refused."""
        now = int(time.time())
        token = sign({
            "sub": str(uuid4()),
            "type": "refresh",
            "iat": now,
            "exp": now + 60,
            "jti": "abc",
        })

        with pytest.raises(InvalidTokenError, match="Expected an access token"):
            jwt_manager.decode_token(token)

    def test_missing_claims_rejected(self, jwt_manager: JWTManager) -> None:
        now = int(time.time())
        token = sign({"type": "access", "iat": now, "exp": now + 60})

        with pytest.raises(InvalidTokenError, match="Invalid token claims"):
            jwt_manager.decode_token(token)

    def test_expired_token(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()),
            expires_delta=timedelta(seconds=-10),
        )

        with pytest.raises(TokenExpiredError, match="Token has expired"):
            jwt_manager.decode_token(token)

    def test_garbage_token(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("invalid.token.here")

    def test_wrong_secret(self, jwt_manager: JWTManager, jwt_settings: MagicMock) -> None:
        """Test that decode fails when the signing key differs."""
        token = jwt_manager.create_access_token(user_id=str(uuid4()))

        other_settings = MagicMock()
        other_settings.secret_key = SecretStr("different-secret-key")
        other_settings.algorithm = jwt_settings.algorithm

        with pytest.raises(InvalidTokenError):
            JWTManager(other_settings).decode_token(token)

    def test_tokens_have_unique_jti(self, jwt_manager: JWTManager) -> None:
        user_id = str(uuid4())

        first = jwt_manager.decode_token(jwt_manager.create_access_token(user_id=user_id))
        second = jwt_manager.decode_token(jwt_manager.create_access_token(user_id=user_id))

        assert first.jti != second.jti
