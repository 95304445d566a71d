"""Current-user profile endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import require_identity
from backend.app.db import get_db
from backend.app.errors import NotFoundError
from backend.app.models.feature import Vote
from backend.app.models.user import User
from backend.app.schemas.auth import Identity
from backend.app.schemas.feature import ProfileResponse, VoteResponse
from backend.app.schemas.user import UserResponse
from backend.app.services import listing, vote_ledger

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    identity: Identity = Depends(require_identity), db: AsyncSession = Depends(get_db)
) -> User:
    user = await db.get(User, identity.id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/me/profile", response_model=ProfileResponse)
async def get_profile(
    identity: Identity = Depends(require_identity), db: AsyncSession = Depends(get_db)
) -> dict:
    return await listing.user_profile(db, identity.id)


@router.get("/me/votes", response_model=list[VoteResponse])
async def get_my_votes(
    identity: Identity = Depends(require_identity), db: AsyncSession = Depends(get_db)
) -> list[Vote]:
    return await vote_ledger.votes_by_user(db, identity.id)
