"""Feature request schemas."""

from pydantic import BaseModel


class FeatureStatusUpdate(BaseModel):
    status: str = ""


class FeatureResponse(BaseModel):
    id: str
    title: str
    description: str
    justification: str | None = None
    priority: str | None = None
    status: str
    user_id: str
    creator_name: str | None = None
    created_at: str
    attachments: list[str] = []
    vote_count: int = 0
    has_voted: bool | None = None


class AdminFeatureResponse(FeatureResponse):
    creator_email: str | None = None


class VoteResponse(BaseModel):
    id: str
    user_id: str
    feature_request_id: str
    created_at: str


class VotedFeatureResponse(BaseModel):
    voted_at: str
    feature: FeatureResponse


class ProfileResponse(BaseModel):
    features: list[FeatureResponse]
    votes: list[VotedFeatureResponse]


class MessageResponse(BaseModel):
    message: str
