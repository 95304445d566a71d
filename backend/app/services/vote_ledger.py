"""Vote ledger: at most one vote per (user, feature).

The invariant lives in the database: ``uq_votes_user_feature`` plus an
``INSERT ... ON CONFLICT DO NOTHING``. Two concurrent ``add_vote`` calls for
the same pair cannot both succeed; the loser sees ``rowcount == 0``.
"""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.errors import DuplicateVoteError, NotFoundError
from backend.app.models.feature import FeatureRequest, Vote

logger = logging.getLogger(__name__)


async def _ensure_feature(db: AsyncSession, feature_id: str) -> None:
    result = await db.execute(select(FeatureRequest.id).where(FeatureRequest.id == feature_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Feature not found")


async def add_vote(db: AsyncSession, user_id: str, feature_id: str) -> Vote:
    await _ensure_feature(db, feature_id)

    vote_id = str(uuid.uuid4())
    stmt = (
        sqlite_insert(Vote.__table__)
        .values(
            id=vote_id,
            user_id=user_id,
            feature_request_id=feature_id,
            created_at=datetime.now(UTC).isoformat(),
        )
        .on_conflict_do_nothing(index_elements=["user_id", "feature_request_id"])
    )
    result = await db.execute(stmt)
    if result.rowcount == 0:
        logger.debug("Duplicate vote by %s on %s", user_id, feature_id)
        raise DuplicateVoteError()

    vote = await db.get(Vote, vote_id)
    logger.info("Vote %s recorded: user=%s feature=%s", vote_id, user_id, feature_id)
    return vote


async def remove_vote(db: AsyncSession, user_id: str, feature_id: str) -> bool:
    """Delete the user's vote; returns whether one existed. Never raises for a missing vote."""
    result = await db.execute(
        delete(Vote).where(Vote.user_id == user_id, Vote.feature_request_id == feature_id)
    )
    removed = result.rowcount > 0
    if removed:
        logger.info("Vote removed: user=%s feature=%s", user_id, feature_id)
    return removed


async def count_for(db: AsyncSession, feature_id: str) -> int:
    """Number of votes on a feature. Raises ``NotFoundError`` for unknown (or deleted) ids."""
    await _ensure_feature(db, feature_id)
    result = await db.execute(
        select(func.count(Vote.id)).where(Vote.feature_request_id == feature_id)
    )
    return result.scalar_one()


async def votes_by_user(db: AsyncSession, user_id: str) -> list[Vote]:
    result = await db.execute(
        select(Vote).where(Vote.user_id == user_id).order_by(Vote.created_at.desc(), Vote.id.desc())
    )
    return list(result.scalars().all())
