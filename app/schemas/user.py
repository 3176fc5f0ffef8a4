from pydantic import BaseModel, EmailStr
from app.models.user import UserRole
from app.schemas.tenant import TenantSummary

class UserSummary(BaseModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole
    tenant: TenantSummary

    class Config:
        from_attributes = True
