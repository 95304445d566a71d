"""Feature request endpoints."""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_identity, require_identity
from backend.app.db import get_db
from backend.app.errors import NotFoundError
from backend.app.models.feature import Vote
from backend.app.schemas.auth import Identity
from backend.app.schemas.feature import (
    FeatureResponse,
    FeatureStatusUpdate,
    MessageResponse,
    VoteResponse,
)
from backend.app.services import feature_service, listing, vote_ledger
from backend.app.services.attachment_store import LocalAttachmentStore, get_attachment_store
from backend.app.services.policy import AuthorizationPolicy, get_policy

router = APIRouter(prefix="/features", tags=["features"])


@router.get("", response_model=list[FeatureResponse])
async def list_features(
    status: str | None = None,
    sort: str | None = None,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await listing.list_features(
        db,
        status=listing.parse_status_filter(status),
        sort=listing.parse_sort(sort),
        viewer_id=identity.id,
    )


@router.post("", response_model=FeatureResponse, status_code=201)
async def create_feature(
    title: str = Form(""),
    description: str = Form(""),
    justification: str | None = Form(None),
    priority: str | None = Form(None),
    attachments: list[UploadFile] = File(default=[]),
    identity: Identity = Depends(require_identity),
    store: LocalAttachmentStore = Depends(get_attachment_store),
    db: AsyncSession = Depends(get_db),
) -> dict:
    # Read at most one byte past the limit so oversized uploads are rejected unbuffered
    blobs = [
        (upload.filename or "attachment", await upload.read(store.max_bytes + 1))
        for upload in attachments
    ]
    feature = await feature_service.create_feature(
        db,
        creator_id=identity.id,
        title=title,
        description=description,
        justification=justification,
        priority=priority,
        attachments=blobs,
        store=store,
    )
    return await feature_service.get_feature(db, feature.id, viewer_id=identity.id)


@router.get("/{feature_id}", response_model=FeatureResponse)
async def get_feature(
    feature_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await feature_service.get_feature(db, feature_id, viewer_id=identity.id)


@router.get("/{feature_id}/attachments/{key}/{name}")
async def download_attachment(
    feature_id: str,
    key: str,
    name: str,
    identity: Identity = Depends(require_identity),
    store: LocalAttachmentStore = Depends(get_attachment_store),
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    feature = await feature_service.get_feature(db, feature_id)
    locator = f"{store.prefix}/{key}/{name}"
    if locator not in feature["attachments"]:
        raise NotFoundError("Attachment not found")
    path = store.path_for(locator)
    if not path.is_file():
        raise NotFoundError("Attachment not found")
    return FileResponse(path, filename=name)


@router.patch("/{feature_id}/status", response_model=FeatureResponse)
async def update_status(
    feature_id: str,
    data: FeatureStatusUpdate,
    identity: Identity | None = Depends(get_identity),
    policy: AuthorizationPolicy = Depends(get_policy),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await feature_service.update_status(db, feature_id, data.status, identity, policy)


@router.post("/{feature_id}/vote", response_model=VoteResponse, status_code=201)
async def add_vote(
    feature_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> Vote:
    return await vote_ledger.add_vote(db, identity.id, feature_id)


@router.delete("/{feature_id}/vote", response_model=MessageResponse)
async def remove_vote(
    feature_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await vote_ledger.remove_vote(db, identity.id, feature_id)
    return {"message": "Vote removed successfully"}
