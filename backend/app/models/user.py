from __future__ import annotations

from enum import StrEnum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base


class Role(StrEnum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    role: Mapped[str] = mapped_column(String, nullable=False, default=Role.USER)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    # Timestamps are stored as ISO 8601 UTC strings (not datetime columns) throughout
    # the schema. Lexicographic order matches chronological order for this format.
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    # Relationships
    feature_requests: Mapped[list[FeatureRequest]] = relationship(
        "FeatureRequest", back_populates="creator"
    )
    votes: Mapped[list[Vote]] = relationship("Vote", back_populates="user")
    sessions: Mapped[list[Session]] = relationship("Session", back_populates="user")
