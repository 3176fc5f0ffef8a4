from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from app.schemas.user import UserSummary


class CamelCaseRequest(BaseModel):
    """Accepts both snake_case and camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterTenantRequest(CamelCaseRequest):
    company_name: str = Field(..., min_length=1, max_length=255)
    company_type: str = Field(..., min_length=1, max_length=100)
    jurisdiction: str = Field(..., min_length=1, max_length=100)
    company_contact_phone: Optional[str] = Field(None, max_length=20)
    admin_name: str = Field(..., min_length=1, max_length=200)
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=8, max_length=255)
    admin_phone: Optional[str] = Field(None, max_length=20)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=255)


class GoogleProfile(BaseModel):
    """Identity returned by Google after the OAuth code exchange."""
    email: EmailStr
    first_name: str = ""
    last_name: str = ""
    google_id: str


class TokenPayload(BaseModel):
    sub: str
    email: str
    role: str
    tenant_id: int


class MessageResponse(BaseModel):
    message: str


class RegisterResponse(MessageResponse):
    tenant_id: int
    user_id: int


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"


class LoginResponse(TokenResponse):
    user: UserSummary
