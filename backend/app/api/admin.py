"""Admin-only endpoints.

Every route resolves the identity (possibly ``None``) and hands it, together
with the injected policy, to the service layer, which raises 401 or 403.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_identity
from backend.app.db import get_db
from backend.app.schemas.auth import Identity
from backend.app.schemas.feature import AdminFeatureResponse, MessageResponse
from backend.app.schemas.user import AdminUserResponse
from backend.app.services import feature_service, listing, user_service
from backend.app.services.attachment_store import LocalAttachmentStore, get_attachment_store
from backend.app.services.policy import Action, AuthorizationPolicy, get_policy, require

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/check")
async def check_admin(
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> dict:
    require(policy, identity, Action.LIST_ADMIN_DATA)
    return {"is_admin": True}


@router.get("/features", response_model=list[AdminFeatureResponse])
async def list_features(
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    require(policy, identity, Action.LIST_ADMIN_DATA)
    return await listing.list_admin_features(db)


@router.delete("/features", response_model=MessageResponse)
async def delete_all_features(
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
    store: LocalAttachmentStore = Depends(get_attachment_store),
    db: AsyncSession = Depends(get_db),
) -> dict:
    removed = await feature_service.delete_all_features(db, identity, policy, store=store)
    return {"message": f"All features deleted successfully ({removed} removed)"}


@router.delete("/features/{feature_id}", response_model=MessageResponse)
async def delete_feature(
    feature_id: str,
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
    store: LocalAttachmentStore = Depends(get_attachment_store),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await feature_service.delete_feature(db, feature_id, identity, policy, store=store)
    return {"message": "Feature deleted successfully"}


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await user_service.list_users(db, identity, policy)


@router.delete("/users", response_model=MessageResponse)
async def delete_all_users(
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
    store: LocalAttachmentStore = Depends(get_attachment_store),
    db: AsyncSession = Depends(get_db),
) -> dict:
    removed = await user_service.delete_all_users(db, identity, policy, store=store)
    return {"message": f"All non-admin users deleted successfully ({removed} removed)"}


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
    store: LocalAttachmentStore = Depends(get_attachment_store),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await user_service.delete_user(db, user_id, identity, policy, store=store)
    return {"message": "User deleted successfully"}
