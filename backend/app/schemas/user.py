from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    email: str
    name: str | None = None
    role: str
    created_at: str


class AdminUserResponse(UserResponse):
    is_admin: bool = False
