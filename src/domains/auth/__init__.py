# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

Users are authenticated by the upstream auth service, which issues JWT
access tokens. ClassRoster validates those tokens and reads the user id and
permission codes from them.

Exports:
    JWTManager: JWT token creation and validation.
"""

from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)

__all__ = [
    "JWTManager",
    "JWTError",
    "InvalidTokenError",
    "TokenExpiredError",
    "TokenPayload",
]
