from datetime import timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.exceptions import (
    AuthError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.logging_config import logger
from app.core.security import (
    JWTError,
    PasswordHasher,
    TokenIssuer,
    generate_reset_token,
    password_hasher,
    token_issuer,
    utcnow,
)
from app.crud.tenant import tenant as tenant_crud
from app.crud.user import user as user_crud
from app.models.user import User, UserStatus
from app.schemas.auth import (
    GoogleProfile,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterResponse,
    RegisterTenantRequest,
    TokenPayload,
    TokenResponse,
)
from app.schemas.tenant import TenantSummary
from app.schemas.user import UserSummary
from app.services.email import EmailService, email_service

FORGOT_PASSWORD_MESSAGE = "If an account with this email exists, a password reset link has been sent"


def split_full_name(full_name: str) -> tuple[str, str]:
    """First whitespace token is the first name, the rest is the last name."""
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


class AuthService:
    """
    Registration, login and session lifecycle for tenant users.

    Each operation is a short sequence of store reads and writes done inside
    one request. Domain errors (subclasses of AuthError) propagate as raised;
    anything unexpected is logged with its stack and replaced by an
    InternalError carrying a safe message.

    Refresh tokens are single-use: the server keeps only a bcrypt hash of
    the one currently valid refresh token per user, and redeeming it clears
    the hash before a new pair is issued.
    """

    def __init__(
        self,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        emails: EmailService,
        max_failed_attempts: int = 5,
        lockout_minutes: int = 30,
        reset_token_minutes: int = 60
    ):
        self.hasher = hasher
        self.tokens = tokens
        self.emails = emails
        self.max_failed_attempts = max_failed_attempts
        self.lockout_minutes = lockout_minutes
        self.reset_token_minutes = reset_token_minutes

    def register_tenant(self, db: Session, data: RegisterTenantRequest) -> RegisterResponse:
        """
        Register a tenant together with its admin user.

        Args:
            db: Database session
            data: Company details and admin credentials

        Returns:
            Identifiers of the created tenant and admin user

        Raises:
            ConflictError: If the admin email or company name is already taken
            InternalError: On any unexpected failure
        """
        try:
            normalized_email = data.admin_email.lower()

            if user_crud.get_by_email(db, email=normalized_email):
                raise ConflictError("A user with this email already exists")
            if tenant_crud.get_by_username(db, username=data.company_name):
                raise ConflictError("A subscriber with this company name already exists")
            if tenant_crud.get_by_email(db, email=normalized_email):
                raise ConflictError("A subscriber with this email already exists")

            password_hash = self.hasher.hash_password(data.admin_password)
            first_name, last_name = split_full_name(data.admin_name)

            tenant, admin = tenant_crud.create_with_user(
                db=db,
                company_name=data.company_name,
                company_type=data.company_type,
                jurisdiction=data.jurisdiction,
                email=normalized_email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                contact_phone=data.company_contact_phone,
                admin_phone=data.admin_phone
            )

            try:
                self.emails.send_welcome_email(admin.email, first_name)
            except Exception as e:
                # Registration already succeeded
                logger.error(f"Failed to send welcome email to {admin.email}: {type(e).__name__}: {str(e)}")

            logger.info(f"New tenant registered: tenant_id={tenant.id}, admin_user_id={admin.id}")
            return RegisterResponse(
                message="Subscriber registered successfully",
                tenant_id=tenant.id,
                user_id=admin.id
            )
        except AuthError:
            raise
        except Exception:
            logger.exception("Error during tenant registration")
            raise InternalError("Failed to register subscriber")

    def login(self, db: Session, data: LoginRequest, ip_address: Optional[str] = None) -> LoginResponse:
        """
        Authenticate with email and password and open a session.

        Raises:
            NotFoundError: If no user has this email
            ForbiddenError: If the account is not active or is locked
            UnauthorizedError: If the password is wrong
        """
        try:
            user = user_crud.get_by_email(db, email=data.email)
            if not user:
                raise NotFoundError("User not found")

            self._ensure_can_sign_in(user)

            if not self.hasher.verify_password(data.password, user.password_hash):
                user_crud.increment_failed_login_attempts(
                    db,
                    db_obj=user,
                    max_attempts=self.max_failed_attempts,
                    lock_duration_minutes=self.lockout_minutes
                )
                logger.warning(
                    f"Failed login for user {user.id}: attempt {user.failed_login_attempts}"
                )
                raise UnauthorizedError("Invalid credentials")

            user_crud.update_last_login(db, db_obj=user, ip_address=ip_address)
            response = self._open_session(db, user)
            logger.info(f"User {user.id} logged in")
            return response
        except AuthError:
            raise
        except Exception:
            logger.exception("Error during login")
            raise InternalError("Login failed")

    def refresh(self, db: Session, refresh_token: str) -> TokenResponse:
        """
        Redeem a refresh token for a new token pair.

        The presented token is invalidated before the new pair is issued, so
        it can never be redeemed twice even if issuance fails half-way.

        Raises:
            UnauthorizedError: If the token is invalid, expired, already used,
                or its user can no longer sign in
        """
        try:
            try:
                payload = self.tokens.verify_refresh_token(refresh_token)
                user_id = int(payload["sub"])
            except (JWTError, KeyError, TypeError, ValueError):
                raise UnauthorizedError("Invalid or expired refresh token")

            user = user_crud.get(db, user_id=user_id)
            if not user or not user.hashed_refresh_token:
                raise UnauthorizedError("Invalid refresh token")

            if not self.hasher.verify_token(refresh_token, user.hashed_refresh_token):
                raise UnauthorizedError("Invalid refresh token")

            if not user.can_authenticate:
                raise UnauthorizedError("User account is not active or locked")

            user_crud.set_refresh_token_hash(db, db_obj=user, hashed_token=None)

            tokens = self._issue_tokens(db, user)
            logger.info(f"Refresh token rotated for user {user.id}")
            return tokens
        except AuthError:
            raise
        except Exception:
            logger.exception("Error during token refresh")
            raise InternalError("Token refresh failed")

    def logout(self, db: Session, user_id: int, refresh_token: Optional[str] = None) -> MessageResponse:
        """
        End the user's session by clearing the stored refresh credential.

        Logging out without a refresh token and without an active session is
        not an error.

        Raises:
            UnauthorizedError: If a supplied refresh token is invalid, belongs to
                another user, or does not match the active session
        """
        try:
            if refresh_token:
                self._check_logout_token(db, user_id, refresh_token)

            user_crud.clear_refresh_token_by_id(db, user_id)
            logger.info(f"User {user_id} logged out successfully")
            return MessageResponse(message="Logged out successfully")
        except AuthError:
            raise
        except Exception:
            logger.exception("Error during logout")
            raise InternalError("Logout failed")

    def forgot_password(self, db: Session, email: str) -> MessageResponse:
        """
        Start a password reset.

        The response is identical whether or not the email is known, and
        whether or not anything went wrong along the way.
        """
        try:
            user = user_crud.get_by_email(db, email=email)
            if user and user.is_active:
                reset_token = generate_reset_token()
                user_crud.update(
                    db,
                    db_obj=user,
                    obj_in={
                        "reset_token": reset_token,
                        "reset_token_expires": utcnow() + timedelta(minutes=self.reset_token_minutes),
                    }
                )

                try:
                    self.emails.send_password_reset_email(user.email, reset_token)
                    logger.info(f"Password reset email sent to user {user.id}")
                except Exception as e:
                    logger.error(f"Failed to send password reset email to user {user.id}: {type(e).__name__}: {str(e)}")
        except Exception:
            logger.exception("Error during forgot password")

        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    def reset_password(self, db: Session, token: str, new_password: str) -> MessageResponse:
        """
        Set a new password using an emailed reset token.

        Also ends every session of the user.

        Raises:
            BadRequestError: If the token is unknown or expired
        """
        try:
            user = user_crud.get_by_reset_token(db, token=token)
            if not user:
                raise BadRequestError("Invalid or expired reset token")

            user_crud.update(
                db,
                db_obj=user,
                obj_in={
                    "password_hash": self.hasher.hash_password(new_password),
                    "reset_token": None,
                    "reset_token_expires": None,
                    "hashed_refresh_token": None,
                }
            )
            logger.info(f"Password reset successfully for user {user.id}")
            return MessageResponse(message="Password reset successfully")
        except AuthError:
            raise
        except Exception:
            logger.exception("Error during password reset")
            raise InternalError("Password reset failed")

    def google_login(self, db: Session, profile: GoogleProfile) -> LoginResponse:
        """
        Sign in a user already verified by Google.

        Never creates accounts: the email must belong to a registered user.
        The Google account id is linked on the first Google sign-in.

        Raises:
            NotFoundError: If no user has this email
            ForbiddenError: If the account is not active or is locked
        """
        try:
            user = user_crud.get_by_email(db, email=profile.email)
            if not user:
                raise NotFoundError(
                    "User not found. Please register first or contact administrator to link your Google account."
                )

            self._ensure_can_sign_in(user)

            if not user.google_id:
                user_crud.update(db, db_obj=user, obj_in={"google_id": profile.google_id})

            user_crud.update_last_login(db, db_obj=user)
            response = self._open_session(db, user)
            logger.info(f"Google login successful for user {user.id}")
            return response
        except AuthError:
            raise
        except Exception:
            logger.exception("Error during Google login")
            raise InternalError("Google login failed")

    def get_profile(self, db: Session, user: User) -> UserSummary:
        """Summary of the authenticated user and their tenant."""
        return self._user_summary(db, user)

    def _ensure_can_sign_in(self, user: User) -> None:
        if user.status != UserStatus.active or not user.is_active:
            raise ForbiddenError("User account is not active")
        if user.is_locked:
            raise ForbiddenError("User account is locked due to too many failed login attempts")

    def _check_logout_token(self, db: Session, user_id: int, refresh_token: str) -> None:
        try:
            payload = self.tokens.verify_refresh_token(refresh_token)
        except JWTError:
            raise UnauthorizedError("Invalid or expired refresh token")

        if str(payload.get("sub")) != str(user_id):
            raise UnauthorizedError("Invalid refresh token")

        user = user_crud.get(db, user_id=user_id)
        if not user or not user.hashed_refresh_token:
            raise UnauthorizedError("Invalid refresh token")
        if not self.hasher.verify_token(refresh_token, user.hashed_refresh_token):
            raise UnauthorizedError("Invalid refresh token")

    def _claims(self, user: User) -> dict:
        payload = TokenPayload(
            sub=str(user.id),
            email=user.email,
            role=user.role.value if hasattr(user.role, "value") else str(user.role),
            tenant_id=user.tenant_id
        )
        return payload.model_dump()

    def _issue_tokens(self, db: Session, user: User) -> TokenResponse:
        """Sign a new access/refresh pair and store the refresh token's hash."""
        claims = self._claims(user)
        access_token = self.tokens.create_access_token(claims)
        refresh_token = self.tokens.create_refresh_token(claims)

        user_crud.set_refresh_token_hash(
            db,
            db_obj=user,
            hashed_token=self.hasher.hash_token(refresh_token)
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.tokens.access_expires_in,
            token_type="Bearer"
        )

    def _open_session(self, db: Session, user: User) -> LoginResponse:
        tokens = self._issue_tokens(db, user)
        return LoginResponse(
            **tokens.model_dump(),
            user=self._user_summary(db, user)
        )

    def _user_summary(self, db: Session, user: User) -> UserSummary:
        tenant = tenant_crud.get(db, tenant_id=user.tenant_id)
        if not tenant:
            raise NotFoundError("Subscriber not found")

        return UserSummary(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            tenant=TenantSummary(
                id=tenant.id,
                company_name=tenant.company_name or tenant.username,
                type=tenant.type
            )
        )


# Create a singleton instance
auth_service = AuthService(
    hasher=password_hasher,
    tokens=token_issuer,
    emails=email_service,
    max_failed_attempts=settings.MAX_FAILED_LOGIN_ATTEMPTS,
    lockout_minutes=settings.LOCKOUT_DURATION_MINUTES,
    reset_token_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
)
