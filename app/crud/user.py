from typing import Any, Dict, Optional
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import select
from app.models.user import User, UserRole, UserStatus
from app.core.security import utcnow


class CRUDUser:
    """
    CRUD operations for User model.

    Every lookup here skips soft-deleted users. Users are global by email,
    so unlike tenant-scoped records they are not filtered by tenant_id.
    """

    def __init__(self):
        self.model = User

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        """
        Retrieve user by email address (case-insensitive).

        Args:
            db: Database session
            email: User email

        Returns:
            User instance or None if not found
        """
        if not email:
            return None
        stmt = select(User).where(
            User.email == email.lower(),
            User.deleted_at.is_(None)
        )
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get(self, db: Session, user_id: int) -> Optional[User]:
        """
        Retrieve an active, non-deleted user by ID.

        Args:
            db: Database session
            user_id: User ID

        Returns:
            User instance or None if not found
        """
        stmt = select(User).where(
            User.id == user_id,
            User.is_active.is_(True),
            User.deleted_at.is_(None)
        )
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get_by_reset_token(self, db: Session, token: str, now: Optional[datetime] = None) -> Optional[User]:
        """
        Retrieve the user holding an unexpired reset token.

        The single query covers both "token exists" and "not expired".
        """
        now = now or utcnow()
        stmt = select(User).where(
            User.reset_token == token,
            User.reset_token_expires > now,
            User.is_active.is_(True),
            User.deleted_at.is_(None)
        )
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def create(
        self,
        db: Session,
        *,
        tenant_id: int,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str = "",
        phone: Optional[str] = None,
        role: UserRole = UserRole.viewer,
        status: UserStatus = UserStatus.pending,
        commit: bool = True
    ) -> User:
        """
        Create a new user from an already hashed password.

        Args:
            db: Database session
            tenant_id: Tenant ID the user belongs to
            email: User email (stored lower-cased)
            password_hash: bcrypt hash of the password
            commit: Whether to commit immediately, or only flush to get the ID

        Returns:
            Created User instance
        """
        db_user = User(
            tenant_id=tenant_id,
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            status=status,
            failed_login_attempts=0,
            is_active=True
        )
        db.add(db_user)
        if commit:
            db.commit()
            db.refresh(db_user)
        else:
            db.flush()  # Get ID without committing
        return db_user

    def update(self, db: Session, *, db_obj: User, obj_in: Dict[str, Any]) -> User:
        """
        Set the given columns on a user and commit.

        Args:
            db: Database session
            db_obj: User instance to update
            obj_in: Column name to value mapping

        Returns:
            Updated User instance
        """
        for field, value in obj_in.items():
            setattr(db_obj, field, value)

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update_last_login(self, db: Session, *, db_obj: User, ip_address: Optional[str] = None) -> User:
        """Record a successful login and clear any lockout bookkeeping."""
        update_data: Dict[str, Any] = {
            "last_login_at": utcnow(),
            "failed_login_attempts": 0,
            "locked_until": None,
        }
        if ip_address:
            update_data["last_login_ip"] = ip_address
        return self.update(db, db_obj=db_obj, obj_in=update_data)

    def increment_failed_login_attempts(
        self,
        db: Session,
        *,
        db_obj: User,
        max_attempts: int = 5,
        lock_duration_minutes: int = 30
    ) -> User:
        """
        Count one wrong password, locking the account at `max_attempts`.

        Returns:
            Updated User instance
        """
        failed_attempts = (db_obj.failed_login_attempts or 0) + 1
        update_data: Dict[str, Any] = {"failed_login_attempts": failed_attempts}
        if failed_attempts >= max_attempts:
            update_data["locked_until"] = utcnow() + timedelta(minutes=lock_duration_minutes)
        return self.update(db, db_obj=db_obj, obj_in=update_data)

    def set_refresh_token_hash(self, db: Session, *, db_obj: User, hashed_token: Optional[str]) -> User:
        """Replace (or clear, with None) the user's single stored refresh credential."""
        return self.update(db, db_obj=db_obj, obj_in={"hashed_refresh_token": hashed_token})

    def clear_refresh_token_by_id(self, db: Session, user_id: int) -> None:
        """Clear the stored refresh credential without requiring the user to be loadable."""
        db_obj = db.get(User, user_id)
        if db_obj is not None and db_obj.hashed_refresh_token is not None:
            self.set_refresh_token_hash(db, db_obj=db_obj, hashed_token=None)


# Create singleton instance
user = CRUDUser()
