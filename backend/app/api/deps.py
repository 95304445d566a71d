"""Request-scoped dependencies: identity resolution and the admin policy."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import settings
from backend.app.db import get_db
from backend.app.errors import UnauthorizedError
from backend.app.schemas.auth import Identity
from backend.app.services import auth_service


def session_token(request: Request) -> str | None:
    """Session token from the cookie, falling back to ``Authorization: Bearer``."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_identity(
    request: Request, db: AsyncSession = Depends(get_db)
) -> Identity | None:
    return await auth_service.resolve(db, session_token(request))


async def require_identity(identity: Identity | None = Depends(get_identity)) -> Identity:
    if identity is None:
        raise UnauthorizedError()
    return identity
