from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base


class Session(Base):
    __tablename__ = "sessions"

    # Opaque bearer token handed to the client
    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)
    expires_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (Index("idx_sessions_user", "user_id"),)

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="sessions")
