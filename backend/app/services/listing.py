"""Listing & ranking of feature requests.

Pure reads: every call recomputes vote counts from the ``votes`` table, so the
result is always consistent with the ledger and there is nothing to invalidate.
"""

import json
from enum import StrEnum

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.errors import NotFoundError, ValidationError
from backend.app.models.feature import FeatureRequest, FeatureStatus, Vote
from backend.app.models.user import User

ALL = "ALL"


class SortOrder(StrEnum):
    VOTES = "votes"
    NEWEST = "newest"
    OLDEST = "oldest"


def _ranked_query() -> Select:
    vote_count = func.count(Vote.id).label("vote_count")
    return (
        select(
            FeatureRequest,
            User.name.label("creator_name"),
            User.email.label("creator_email"),
            vote_count,
        )
        .outerjoin(User, FeatureRequest.user_id == User.id)
        .outerjoin(Vote, FeatureRequest.id == Vote.feature_request_id)
        .group_by(FeatureRequest.id, User.name, User.email)
    )


def _apply_sort(query: Select, sort: SortOrder) -> Select:
    # id is the last key everywhere so equal rows still come back in a stable order
    if sort == SortOrder.NEWEST:
        return query.order_by(FeatureRequest.created_at.desc(), FeatureRequest.id.desc())
    if sort == SortOrder.OLDEST:
        return query.order_by(FeatureRequest.created_at.asc(), FeatureRequest.id.asc())
    return query.order_by(
        func.count(Vote.id).desc(),
        FeatureRequest.created_at.desc(),
        FeatureRequest.id.desc(),
    )


def parse_status_filter(status: str | None) -> FeatureStatus | None:
    """Map a raw ``status`` query value to a filter; ``None``/``ALL`` mean no filter."""
    if status is None or status == "" or status.upper() == ALL:
        return None
    try:
        return FeatureStatus(status.upper())
    except ValueError:
        raise ValidationError(f"Invalid status filter: {status}") from None


def parse_sort(sort: str | None) -> SortOrder:
    if not sort:
        return SortOrder.VOTES
    try:
        return SortOrder(sort.lower())
    except ValueError:
        raise ValidationError(f"Invalid sort order: {sort}") from None


def decode_attachments(raw: str | None) -> list[str]:
    return json.loads(raw) if raw else []


def feature_view(
    fr: FeatureRequest,
    vote_count: int,
    creator_name: str | None = None,
    has_voted: bool | None = None,
    creator_email: str | None = None,
) -> dict:
    view = {
        "id": fr.id,
        "title": fr.title,
        "description": fr.description,
        "justification": fr.justification,
        "priority": fr.priority,
        "status": fr.status,
        "user_id": fr.user_id,
        "creator_name": creator_name,
        "created_at": fr.created_at,
        "attachments": decode_attachments(fr.attachments),
        "vote_count": vote_count,
        "has_voted": has_voted,
    }
    if creator_email is not None:
        view["creator_email"] = creator_email
    return view


async def _voted_feature_ids(db: AsyncSession, viewer_id: str) -> set[str]:
    result = await db.execute(select(Vote.feature_request_id).where(Vote.user_id == viewer_id))
    return set(result.scalars().all())


async def list_features(
    db: AsyncSession,
    status: FeatureStatus | None = None,
    sort: SortOrder = SortOrder.VOTES,
    viewer_id: str | None = None,
) -> list[dict]:
    """Filtered, ranked feature views.

    ``has_voted`` is only populated when ``viewer_id`` is given; otherwise it
    stays ``None`` so callers can tell "not asked" from "did not vote".
    """
    query = _ranked_query()
    if status is not None:
        query = query.where(FeatureRequest.status == status)
    query = _apply_sort(query, sort)

    rows = (await db.execute(query)).all()
    voted = await _voted_feature_ids(db, viewer_id) if viewer_id else None

    return [
        feature_view(
            fr,
            vote_count,
            creator_name=creator_name,
            has_voted=(fr.id in voted) if voted is not None else None,
        )
        for fr, creator_name, _creator_email, vote_count in rows
    ]


async def get_feature_view(
    db: AsyncSession, feature_id: str, viewer_id: str | None = None
) -> dict:
    query = _ranked_query().where(FeatureRequest.id == feature_id)
    row = (await db.execute(query)).first()
    if row is None:
        raise NotFoundError("Feature not found")

    fr, creator_name, _creator_email, vote_count = row
    has_voted = None
    if viewer_id:
        has_voted = fr.id in await _voted_feature_ids(db, viewer_id)
    return feature_view(fr, vote_count, creator_name=creator_name, has_voted=has_voted)


async def list_admin_features(db: AsyncSession) -> list[dict]:
    """Every feature, newest first, with the creator's email for triage."""
    query = _apply_sort(_ranked_query(), SortOrder.NEWEST)
    rows = (await db.execute(query)).all()
    return [
        feature_view(
            fr,
            vote_count,
            creator_name=creator_name,
            creator_email=creator_email or "",
        )
        for fr, creator_name, creator_email, vote_count in rows
    ]


async def user_profile(db: AsyncSession, user_id: str) -> dict:
    """The user's own submissions and the features they have voted on."""
    own = _apply_sort(_ranked_query().where(FeatureRequest.user_id == user_id), SortOrder.NEWEST)
    own_rows = (await db.execute(own)).all()
    voted = await _voted_feature_ids(db, user_id)

    features = [
        feature_view(fr, vote_count, creator_name=creator_name, has_voted=fr.id in voted)
        for fr, creator_name, _creator_email, vote_count in own_rows
    ]

    vote_rows = (
        await db.execute(
            select(Vote.feature_request_id, Vote.created_at)
            .where(Vote.user_id == user_id)
            .order_by(Vote.created_at.desc(), Vote.id.desc())
        )
    ).all()
    views = {}
    if vote_rows:
        ranked = _ranked_query().where(
            FeatureRequest.id.in_([feature_id for feature_id, _ in vote_rows])
        )
        for fr, creator_name, _creator_email, vote_count in (await db.execute(ranked)).all():
            views[fr.id] = feature_view(
                fr, vote_count, creator_name=creator_name, has_voted=True
            )

    return {
        "features": features,
        "votes": [
            {"voted_at": voted_at, "feature": views[feature_id]}
            for feature_id, voted_at in vote_rows
            if feature_id in views
        ],
    }
