from backend.app.models.user import Role, User
from backend.app.models.session import Session
from backend.app.models.feature import FeatureRequest, FeatureStatus, Priority, Vote

__all__ = [
    "Role",
    "User",
    "Session",
    "FeatureRequest",
    "FeatureStatus",
    "Priority",
    "Vote",
]
