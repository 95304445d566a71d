"""Authorization policy: the single place that decides who may do admin work.

Every admin-gated operation receives a policy object instead of re-deriving the
rule itself. Which rule is active is a configuration choice
(``FEATUREBOARD_ADMIN_POLICY``); call sites never change.
"""

from enum import StrEnum

from backend.app.config import settings
from backend.app.errors import ForbiddenError, UnauthorizedError
from backend.app.models.user import Role
from backend.app.schemas.auth import Identity


class Action(StrEnum):
    UPDATE_STATUS = "update-status"
    DELETE_FEATURE = "delete-feature"
    DELETE_USER = "delete-user"
    LIST_ADMIN_DATA = "list-admin-data"


class AuthorizationPolicy:
    """Base policy: every admin action is allowed for admins only."""

    def is_admin(self, identity: Identity | None) -> bool:
        raise NotImplementedError

    def can(self, identity: Identity | None, action: Action, resource: object = None) -> bool:
        if identity is None:
            return False
        return self.is_admin(identity)


class RolePolicy(AuthorizationPolicy):
    def is_admin(self, identity: Identity | None) -> bool:
        return identity is not None and identity.role == Role.ADMIN


class EmailDomainPolicy(AuthorizationPolicy):
    def __init__(self, domain: str) -> None:
        self.suffix = "@" + domain.lower().lstrip("@")

    def is_admin(self, identity: Identity | None) -> bool:
        return identity is not None and identity.email.lower().endswith(self.suffix)


class AllowListPolicy(AuthorizationPolicy):
    def __init__(self, emails: list[str]) -> None:
        self.emails = {e.strip().lower() for e in emails if e.strip()}

    def is_admin(self, identity: Identity | None) -> bool:
        return identity is not None and identity.email.lower() in self.emails


class AnyOfPolicy(AuthorizationPolicy):
    """Grants admin when any member policy does."""

    def __init__(self, *policies: AuthorizationPolicy) -> None:
        self.policies = policies

    def is_admin(self, identity: Identity | None) -> bool:
        return any(p.is_admin(identity) for p in self.policies)


def build_policy(
    name: str | None = None,
    email_domain: str | None = None,
    emails: list[str] | None = None,
) -> AuthorizationPolicy:
    """Build the policy named by ``name`` (defaults to the configured one).

    The ADMIN role always counts; ``email_domain`` and ``allow_list`` widen it.
    """
    name = name or settings.admin_policy
    if name == "role":
        return RolePolicy()
    if name == "email_domain":
        return AnyOfPolicy(
            RolePolicy(), EmailDomainPolicy(email_domain or settings.admin_email_domain)
        )
    if name == "allow_list":
        return AnyOfPolicy(
            RolePolicy(),
            AllowListPolicy(emails if emails is not None else settings.admin_emails),
        )
    raise ValueError(f"Unknown admin policy: {name!r}")


def get_policy() -> AuthorizationPolicy:
    """FastAPI dependency returning the configured policy."""
    return build_policy()


def require(
    policy: AuthorizationPolicy,
    identity: Identity | None,
    action: Action,
    resource: object = None,
) -> Identity:
    """Raise 401 when there is no identity, 403 when it is not authorized."""
    if identity is None:
        raise UnauthorizedError()
    if not policy.can(identity, action, resource):
        raise ForbiddenError(f"Not allowed to {action}")
    return identity
