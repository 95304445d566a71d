"""Accounts and session tokens.

This is the identity collaborator: it turns credentials into a session and a
session token back into an ``Identity``. The lifecycle and voting code only
ever sees the resolved identity.
"""

import logging
import secrets
import uuid
from datetime import UTC, datetime, timedelta

import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import settings
from backend.app.errors import ConflictError, UnauthorizedError, ValidationError
from backend.app.models.session import Session
from backend.app.models.user import Role, User
from backend.app.schemas.auth import Identity

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Unusable hashes (e.g. the sentinel account) never match
        return False


def identity_of(user: User) -> Identity:
    return Identity(id=user.id, email=user.email, role=user.role, name=user.name)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


async def register(
    db: AsyncSession,
    email: str,
    password: str,
    name: str | None = None,
    role: Role = Role.USER,
) -> User:
    email = normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise ConflictError("Email is already registered")

    user = User(
        id=str(uuid.uuid4()),
        email=email,
        name=(name or "").strip() or None,
        role=role,
        password_hash=hash_password(password),
        created_at=datetime.now(UTC).isoformat(),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        raise ConflictError("Email is already registered") from None
    logger.info("Registered user %s (%s)", user.id, email)
    return user


async def login(db: AsyncSession, email: str, password: str) -> tuple[Session, User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password or "", user.password_hash):
        raise UnauthorizedError("Invalid email or password")

    now = datetime.now(UTC)
    session = Session(
        id=secrets.token_urlsafe(32),
        user_id=user.id,
        created_at=now.isoformat(),
        expires_at=(now + timedelta(hours=settings.session_ttl_hours)).isoformat(),
    )
    db.add(session)
    await db.flush()
    logger.info("User %s logged in", user.email)
    return session, user


async def logout(db: AsyncSession, token: str | None) -> None:
    if token:
        await db.execute(delete(Session).where(Session.id == token))


async def resolve(db: AsyncSession, token: str | None) -> Identity | None:
    """Map a session token to its identity; ``None`` for unknown or expired tokens."""
    if not token:
        return None

    result = await db.execute(
        select(Session, User).join(User, Session.user_id == User.id).where(Session.id == token)
    )
    row = result.first()
    if row is None:
        return None

    session, user = row
    if datetime.fromisoformat(session.expires_at) <= datetime.now(UTC):
        logger.debug("Session for %s expired", user.email)
        return None
    return identity_of(user)


async def set_role(db: AsyncSession, email: str, role: Role) -> User:
    """Direct administrative role edit (used by the CLI)."""
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    user = result.scalar_one_or_none()
    if user is None:
        raise ValidationError(f"No user with email {email}")
    user.role = role
    await db.flush()
    logger.info("User %s role set to %s", user.email, role)
    return user
