"""Registration, login & logout endpoints."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import require_identity, session_token
from backend.app.config import settings
from backend.app.db import get_db
from backend.app.models.user import User
from backend.app.schemas.auth import Identity, LoginRequest, LoginResponse, RegisterRequest
from backend.app.schemas.user import UserResponse
from backend.app.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)) -> User:
    return await auth_service.register(db, data.email, data.password, data.name)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)
) -> dict:
    session, user = await auth_service.login(db, data.email, data.password)
    response.set_cookie(
        settings.session_cookie_name,
        session.id,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
    )
    return {
        "token": session.id,
        "expires_at": session.expires_at,
        "user": auth_service.identity_of(user),
    }


@router.post("/logout", status_code=204)
async def logout(request: Request, response: Response, db: AsyncSession = Depends(get_db)) -> None:
    await auth_service.logout(db, session_token(request))
    response.delete_cookie(settings.session_cookie_name)


@router.get("/me", response_model=Identity)
async def me(identity: Identity = Depends(require_identity)) -> Identity:
    return identity
