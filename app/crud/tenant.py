import re
from typing import Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from app.models.tenant import Tenant
from app.models.user import User, UserRole, UserStatus
from app.crud.user import user as user_crud
from app.core.exceptions import ConflictError

CONSTRAINT_MESSAGES = {
    "tenant_username_key": "Subscriber company name already exists",
    "tenant_email_key": "Subscriber email already exists",
    "user_email_key": "User email already exists",
}

# SQLite reports "UNIQUE constraint failed: user.email" instead of a constraint name
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (\w+)\.(\w+)")


def violated_constraint(error: IntegrityError) -> Optional[str]:
    """
    Name of the unique constraint behind an IntegrityError, if it can be told.

    PostgreSQL drivers expose it on the diagnostics object; for SQLite the
    name is rebuilt from the failing column using the <table>_<column>_key
    convention PostgreSQL applies to unique columns.
    """
    diag = getattr(error.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name
    match = _SQLITE_UNIQUE.search(str(error.orig))
    if match:
        return f"{match.group(1)}_{match.group(2)}_key"
    return None


def is_unique_violation(error: IntegrityError) -> bool:
    pgcode = getattr(error.orig, "pgcode", None)
    if pgcode is not None:
        return pgcode == "23505"
    message = str(error.orig).lower()
    return "unique" in message or "duplicate" in message


class CRUDTenant:
    """
    CRUD operations for Tenant model.

    Note: Tenant model doesn't have tenant_id (it IS the tenant),
    so lookups are by its own unique columns.
    """

    def __init__(self):
        self.model = Tenant

    def get(self, db: Session, tenant_id: int) -> Optional[Tenant]:
        stmt = select(Tenant).where(Tenant.id == tenant_id)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get_by_username(self, db: Session, username: str) -> Optional[Tenant]:
        if not username:
            return None
        stmt = select(Tenant).where(Tenant.username == username)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get_by_email(self, db: Session, email: str) -> Optional[Tenant]:
        if not email:
            return None
        stmt = select(Tenant).where(Tenant.email == email.lower())
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def create_with_user(
        self,
        db: Session,
        *,
        company_name: str,
        company_type: str,
        jurisdiction: str,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        contact_phone: Optional[str] = None,
        admin_phone: Optional[str] = None
    ) -> Tuple[Tenant, User]:
        """
        Create a tenant and its bootstrap admin user atomically.

        Args:
            db: Database session
            company_name: Registered company name, also the tenant username
            company_type: Kind of company
            jurisdiction: Jurisdiction the company operates under
            email: Admin email, shared by tenant and admin user
            password_hash: bcrypt hash of the admin password
            first_name: Admin first name
            last_name: Admin last name

        Returns:
            Tuple of (created Tenant, created User)

        Raises:
            ConflictError: If a unique constraint is violated by a concurrent registration
        """
        try:
            tenant = Tenant(
                username=company_name,
                email=email.lower(),
                password_hash=password_hash,
                type=company_type,
                status="active",
                company_name=company_name,
                contact_person_name=f"{first_name} {last_name}".strip(),
                contact_person_phone=contact_phone,
                jurisdiction=jurisdiction,
                is_active=True
            )
            db.add(tenant)
            db.flush()  # Get tenant.id without committing

            user = user_crud.create(
                db=db,
                tenant_id=tenant.id,
                email=email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                phone=admin_phone,
                role=UserRole.admin,
                status=UserStatus.active,
                commit=False  # Don't commit yet - we'll commit both together
            )

            # Commit both tenant and user atomically
            db.commit()
            db.refresh(tenant)
            db.refresh(user)

            return tenant, user

        except IntegrityError as e:
            db.rollback()
            if not is_unique_violation(e):
                raise
            constraint = violated_constraint(e)
            raise ConflictError(
                CONSTRAINT_MESSAGES.get(constraint, "Duplicate value violates a unique constraint")
            ) from e


# Create singleton instance
tenant = CRUDTenant()
