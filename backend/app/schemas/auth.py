from pydantic import BaseModel


class Identity(BaseModel):
    """Resolved caller identity handed to the service layer."""

    id: str
    email: str
    role: str
    name: str | None = None


class RegisterRequest(BaseModel):
    email: str = ""
    password: str = ""
    name: str | None = None


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    token: str
    expires_at: str
    user: Identity
