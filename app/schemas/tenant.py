from pydantic import BaseModel
from typing import Optional

class TenantSummary(BaseModel):
    id: int
    company_name: Optional[str] = None
    type: Optional[str] = None

    class Config:
        from_attributes = True
