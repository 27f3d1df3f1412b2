# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request dependencies for the roster endpoints.

Routes take their session and caller through the annotated aliases at the
bottom of this module:

    @router.post("/{class_id}/batch-transfer")
    async def batch_transfer(current_user: TransferUser, db: DB):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)

TRANSFER_PERMISSION = "classes.transfer"


async def init_db() -> None:
    await init_database(get_settings())


async def close_db() -> None:
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request.

    The session commits when the endpoint returns and rolls back when it
    raises.
    """
    async with get_session() as session:
        yield session


def require_auth(request: Request) -> CurrentUser:
    """Return the caller or answer 401.

    Raises:
        HTTPException: No valid access token came with the request.
    """
    user = get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


class RequirePermission:
    """Dependency that admits callers holding any of the given permissions.

    Example:
        user: CurrentUser = Depends(RequirePermission(TRANSFER_PERMISSION))
    """

    def __init__(self, *permissions: str) -> None:
        self.permissions = permissions

    def __call__(self, request: Request) -> CurrentUser:
        user = require_auth(request)

        if not user.has_any_permission(*self.permissions):
            logger.warning(
                "User %s lacks permission for %s %s",
                user.id,
                request.method,
                request.url.path,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of: {', '.join(self.permissions)}",
            )

        return user


DB = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
TransferUser = Annotated[CurrentUser, Depends(RequirePermission(TRANSFER_PERMISSION))]
