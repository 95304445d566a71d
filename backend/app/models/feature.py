from __future__ import annotations

from enum import StrEnum

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base


class FeatureStatus(StrEnum):
    OPEN = "OPEN"
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Priority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class FeatureRequest(Base):
    __tablename__ = "feature_requests"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    justification: Mapped[str | None] = mapped_column(String, nullable=True)
    priority: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default=FeatureStatus.OPEN)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False, index=True)
    # JSON-encoded list of attachment locators
    attachments: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (Index("idx_feature_requests_status", "status"),)

    # Relationships
    creator: Mapped[User] = relationship("User", back_populates="feature_requests")
    votes: Mapped[list[Vote]] = relationship("Vote", back_populates="feature_request")


class Vote(Base):
    __tablename__ = "votes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    feature_request_id: Mapped[str] = mapped_column(
        String, ForeignKey("feature_requests.id"), nullable=False, index=True
    )
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "feature_request_id", name="uq_votes_user_feature"),
    )

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="votes")
    feature_request: Mapped[FeatureRequest] = relationship(
        "FeatureRequest", back_populates="votes"
    )
