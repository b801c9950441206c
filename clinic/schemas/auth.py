from pydantic import BaseModel, EmailStr, Field

from ..core.security import Role

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int

class TokenVerification(BaseModel):
    valid: bool
    role: Role
    subject: str
