"""Feature request lifecycle: create, change status, delete.

Admin-gated operations take the ``AuthorizationPolicy`` explicitly; nothing in
here decides on its own who is an admin.
"""

import json
import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import settings
from backend.app.errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from backend.app.models.feature import FeatureRequest, FeatureStatus, Priority, Vote
from backend.app.models.user import User
from backend.app.schemas.auth import Identity
from backend.app.services.attachment_store import LocalAttachmentStore, get_attachment_store
from backend.app.services.listing import decode_attachments, get_feature_view
from backend.app.services.policy import Action, AuthorizationPolicy, require

logger = logging.getLogger(__name__)

# Progression used when transitions are restricted to moving forward
STATUS_ORDER = (
    FeatureStatus.OPEN,
    FeatureStatus.PLANNED,
    FeatureStatus.IN_PROGRESS,
    FeatureStatus.COMPLETED,
)


def _parse_priority(priority: str | None) -> Priority | None:
    if priority is None or priority.strip() == "":
        return None
    try:
        return Priority(priority.strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid priority: {priority}") from None


def parse_status(status: str | None) -> FeatureStatus:
    try:
        return FeatureStatus((status or "").strip().upper())
    except ValueError:
        raise ValidationError("Invalid status value") from None


def check_transition(current: str, new: FeatureStatus, mode: str | None = None) -> None:
    """Raise ``InvalidTransitionError`` if ``current -> new`` is not allowed under ``mode``.

    ``free`` accepts anything. ``forward`` accepts staying put or moving to a
    later stage, never going back.
    """
    mode = mode or settings.status_transitions
    if mode == "free":
        return
    if mode != "forward":
        raise ValueError(f"Unknown status transition mode: {mode!r}")
    if STATUS_ORDER.index(new) < STATUS_ORDER.index(FeatureStatus(current)):
        raise InvalidTransitionError(f"Cannot move feature from {current} back to {new}")


async def create_feature(
    db: AsyncSession,
    creator_id: str,
    title: str,
    description: str,
    justification: str | None = None,
    priority: str | None = None,
    attachments: list[tuple[str, bytes]] | None = None,
    store: LocalAttachmentStore | None = None,
) -> FeatureRequest:
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        raise ValidationError("Title and description are required")
    parsed_priority = _parse_priority(priority)

    if await db.get(User, creator_id) is None:
        raise NotFoundError("Creator not found")

    attachments = attachments or []
    if attachments and store is None:
        raise ValueError("An attachment store is required to save attachments")
    for name, data in attachments:
        store.check(name, len(data))

    locators: list[str] = []
    try:
        for name, data in attachments:
            locators.append(store.save(name, data))

        feature = FeatureRequest(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            justification=(justification or "").strip() or None,
            priority=parsed_priority,
            status=FeatureStatus.OPEN,
            user_id=creator_id,
            created_at=datetime.now(UTC).isoformat(),
            attachments=json.dumps(locators) if locators else None,
        )
        db.add(feature)
        await db.flush()
    except Exception:
        # Nothing may point at these blobs once the insert is abandoned
        if locators:
            store.delete_many(locators)
        raise

    logger.info(
        "Feature %s created by %s (%d attachments)", feature.id, creator_id, len(locators)
    )
    return feature


async def get_feature(db: AsyncSession, feature_id: str, viewer_id: str | None = None) -> dict:
    return await get_feature_view(db, feature_id, viewer_id=viewer_id)


async def update_status(
    db: AsyncSession,
    feature_id: str,
    new_status: str,
    actor: Identity | None,
    policy: AuthorizationPolicy,
    transitions: str | None = None,
) -> dict:
    """Set a feature's status. Last writer wins; returns the refreshed view."""
    require(policy, actor, Action.UPDATE_STATUS)
    status = parse_status(new_status)

    feature = await db.get(FeatureRequest, feature_id)
    if feature is None:
        raise NotFoundError("Feature not found")

    check_transition(feature.status, status, transitions)
    previous = feature.status
    feature.status = status
    await db.flush()

    logger.info(
        "Feature %s status %s -> %s by %s", feature_id, previous, status, actor.email
    )
    return await get_feature_view(db, feature_id)


async def attachment_locators(db: AsyncSession, *criteria) -> list[str]:
    """Decoded attachment locators of every feature matching ``criteria``."""
    result = await db.execute(select(FeatureRequest.attachments).where(*criteria))
    return [locator for raw in result.scalars().all() for locator in decode_attachments(raw)]


async def delete_feature(
    db: AsyncSession,
    feature_id: str,
    actor: Identity | None,
    policy: AuthorizationPolicy,
    store: LocalAttachmentStore | None = None,
) -> None:
    """Delete a feature, its votes and its attachment blobs.

    Both deletes run in the caller's transaction: if the feature delete fails
    the vote delete is rolled back with it. Blobs are only removed once the
    rows are gone.
    """
    require(policy, actor, Action.DELETE_FEATURE)

    result = await db.execute(select(FeatureRequest.id).where(FeatureRequest.id == feature_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Feature not found")
    locators = await attachment_locators(db, FeatureRequest.id == feature_id)

    try:
        votes = await db.execute(delete(Vote).where(Vote.feature_request_id == feature_id))
        await db.execute(delete(FeatureRequest).where(FeatureRequest.id == feature_id))
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Failed to delete feature %s", feature_id)
        raise PersistenceError("Failed to delete feature") from exc

    (store or get_attachment_store()).delete_many(locators)
    logger.info(
        "Feature %s deleted by %s (%d votes, %d attachments removed)",
        feature_id,
        actor.email,
        votes.rowcount,
        len(locators),
    )


async def delete_all_features(
    db: AsyncSession,
    actor: Identity | None,
    policy: AuthorizationPolicy,
    store: LocalAttachmentStore | None = None,
) -> int:
    """Administrative reset: remove every vote and every feature. Returns features removed."""
    require(policy, actor, Action.DELETE_FEATURE)
    locators = await attachment_locators(db)

    try:
        await db.execute(delete(Vote))
        result = await db.execute(delete(FeatureRequest))
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Failed to delete all features")
        raise PersistenceError("Failed to delete features") from exc

    (store or get_attachment_store()).delete_many(locators)
    logger.info("All features deleted by %s (%d removed)", actor.email, result.rowcount)
    return result.rowcount
