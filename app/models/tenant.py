from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin

class Tenant(Base, TimestampMixin):
    __tablename__ = "tenant"
    __table_args__ = (
        UniqueConstraint("username", name="tenant_username_key"),
        UniqueConstraint("email", name="tenant_email_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False)  # company name as registered
    email = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="active")
    company_name = Column(String, nullable=True)
    contact_person_name = Column(String, nullable=True)
    contact_person_phone = Column(String, nullable=True)
    jurisdiction = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    users = relationship("User", back_populates="tenant", passive_deletes=True)
