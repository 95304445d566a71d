"""Administrative user management.

What happens to a deleted user's features and votes is a policy choice
(``FEATUREBOARD_USER_DELETION_POLICY``):

- ``forbid``: refuse while the user still owns features or votes.
- ``cascade``: delete their votes, the votes on their features, then the features.
- ``reassign``: hand their features to a sentinel "deleted user" account and
  drop their votes (a vote is a personal endorsement and is not transferable).
"""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import settings
from backend.app.errors import ConflictError, ForbiddenError, NotFoundError
from backend.app.models.feature import FeatureRequest, Vote
from backend.app.models.session import Session
from backend.app.models.user import Role, User
from backend.app.schemas.auth import Identity
from backend.app.services.attachment_store import LocalAttachmentStore, get_attachment_store
from backend.app.services.auth_service import identity_of
from backend.app.services.feature_service import attachment_locators
from backend.app.services.policy import Action, AuthorizationPolicy, require

logger = logging.getLogger(__name__)

DELETED_USER_EMAIL = "deleted-user@featureboard.invalid"
DELETED_USER_NAME = "Deleted user"


async def list_users(
    db: AsyncSession, actor: Identity | None, policy: AuthorizationPolicy
) -> list[dict]:
    require(policy, actor, Action.LIST_ADMIN_DATA)

    result = await db.execute(
        select(User).where(User.email != DELETED_USER_EMAIL).order_by(User.created_at.desc())
    )
    return [
        {
            "id": u.id,
            "email": u.email,
            "name": u.name,
            "role": u.role,
            "created_at": u.created_at,
            "is_admin": policy.is_admin(identity_of(u)),
        }
        for u in result.scalars().all()
    ]


async def _get_or_create_sentinel(db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.email == DELETED_USER_EMAIL))
    sentinel = result.scalar_one_or_none()
    if sentinel is None:
        sentinel = User(
            id=str(uuid.uuid4()),
            email=DELETED_USER_EMAIL,
            name=DELETED_USER_NAME,
            role=Role.USER,
            # Not a bcrypt hash, so no password ever matches
            password_hash="!",
            created_at=datetime.now(UTC).isoformat(),
        )
        db.add(sentinel)
        await db.flush()
    return sentinel


async def _owns_content(db: AsyncSession, user_id: str) -> bool:
    features = await db.execute(
        select(func.count(FeatureRequest.id)).where(FeatureRequest.user_id == user_id)
    )
    votes = await db.execute(select(func.count(Vote.id)).where(Vote.user_id == user_id))
    return features.scalar_one() > 0 or votes.scalar_one() > 0

async def _release_content(db: AsyncSession, user: User, mode: str) -> list[str]:
    """Detach ``user``'s features and votes. Returns attachment locators to remove."""
    if mode == "forbid":
        if await _owns_content(db, user.id):
            raise ConflictError(
                f"User {user.email} still has feature requests or votes; "
                "remove them first or change the deletion policy"
            )
        return []

    if mode == "cascade":
        locators = await attachment_locators(db, FeatureRequest.user_id == user.id)
        owned = select(FeatureRequest.id).where(FeatureRequest.user_id == user.id)
        await db.execute(
            delete(Vote).where(
                (Vote.user_id == user.id) | Vote.feature_request_id.in_(owned)
            )
        )
        await db.execute(delete(FeatureRequest).where(FeatureRequest.user_id == user.id))
        return locators

    if mode == "reassign":
        sentinel = await _get_or_create_sentinel(db)
        await db.execute(delete(Vote).where(Vote.user_id == user.id))
        await db.execute(
            update(FeatureRequest)
            .where(FeatureRequest.user_id == user.id)
            .values(user_id=sentinel.id)
        )
        return []

    raise ValueError(f"Unknown user deletion policy: {mode!r}")


async def _delete_user(db: AsyncSession, user: User, mode: str) -> list[str]:
    locators = await _release_content(db, user, mode)
    await db.execute(delete(Session).where(Session.user_id == user.id))
    await db.execute(delete(User).where(User.id == user.id))
    return locators


async def delete_user(
    db: AsyncSession,
    user_id: str,
    actor: Identity | None,
    policy: AuthorizationPolicy,
    mode: str | None = None,
    store: LocalAttachmentStore | None = None,
) -> None:
    require(policy, actor, Action.DELETE_USER)
    mode = mode or settings.user_deletion_policy

    user = await db.get(User, user_id)
    # The sentinel owns reassigned features and is not a real account
    if user is None or user.email == DELETED_USER_EMAIL:
        raise NotFoundError("User not found")
    if policy.is_admin(identity_of(user)):
        raise ForbiddenError("Cannot delete admin users")

    locators = await _delete_user(db, user, mode)
    await db.flush()
    (store or get_attachment_store()).delete_many(locators)
    logger.info("User %s deleted by %s (policy=%s)", user.email, actor.email, mode)


async def delete_all_users(
    db: AsyncSession,
    actor: Identity | None,
    policy: AuthorizationPolicy,
    mode: str | None = None,
    store: LocalAttachmentStore | None = None,
) -> int:
    """Delete every non-admin user. Returns the number removed."""
    require(policy, actor, Action.DELETE_USER)
    mode = mode or settings.user_deletion_policy

    result = await db.execute(select(User).where(User.email != DELETED_USER_EMAIL))
    targets = [u for u in result.scalars().all() if not policy.is_admin(identity_of(u))]
    locators: list[str] = []
    for user in targets:
        locators.extend(await _delete_user(db, user, mode))
    await db.flush()
    (store or get_attachment_store()).delete_many(locators)

    logger.info(
        "%d non-admin users deleted by %s (policy=%s)", len(targets), actor.email, mode
    )
    return len(targets)
