from backend.app.schemas.auth import Identity, LoginRequest, LoginResponse, RegisterRequest
from backend.app.schemas.feature import (
    AdminFeatureResponse,
    FeatureResponse,
    FeatureStatusUpdate,
    MessageResponse,
    ProfileResponse,
    VotedFeatureResponse,
    VoteResponse,
)
from backend.app.schemas.user import AdminUserResponse, UserResponse

__all__ = [
    "Identity",
    "RegisterRequest",
    "LoginRequest",
    "LoginResponse",
    "UserResponse",
    "AdminUserResponse",
    "FeatureStatusUpdate",
    "FeatureResponse",
    "AdminFeatureResponse",
    "VoteResponse",
    "VotedFeatureResponse",
    "ProfileResponse",
    "MessageResponse",
]
