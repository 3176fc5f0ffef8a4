from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.exceptions import AuthError
from app.core.logging_config import logger
from app.core.rate_limit import rate_limiter
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterResponse,
    RegisterTenantRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from app.schemas.user import UserSummary
from app.services.auth import auth_service
from app.services.google_oauth import GoogleOAuthError, google_oauth_client

router = APIRouter()


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.get(
    "/health",
    dependencies=[Depends(rate_limiter.limit("health", "3/second;20/10 seconds;100/minute"))]
)
def health_check():
    """Health status of the authentication service."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "auth",
    }


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limiter.limit("register", "1/second;3/10 seconds;5/minute"))]
)
def register(data: RegisterTenantRequest, db: Session = Depends(get_db)):
    """
    Register a new subscriber organization and its admin user.

    Raises:
        409: If the admin email or company name is already registered
    """
    logger.info(f"Registration attempt for company: {data.company_name}")
    return auth_service.register_tenant(db, data)


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limiter.limit("login", "3/second;5/10 seconds;10/minute"))]
)
def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """
    Authenticate with email and password.

    Returns access and refresh tokens plus a summary of the user.

    Raises:
        401: Wrong password
        403: Account inactive or locked
        404: Unknown email
    """
    logger.info(f"Login attempt for email: {data.email}")
    return auth_service.login(db, data, ip_address=client_ip(request))


@router.post(
    "/refresh",
    response_model=TokenResponse,
    dependencies=[Depends(rate_limiter.limit("refresh", "3/second;10/10 seconds;20/minute"))]
)
def refresh_token(data: RefreshTokenRequest, db: Session = Depends(get_db)):
    """
    Exchange a refresh token for a new token pair.

    The presented refresh token stops working; use the returned one next time.
    """
    logger.info("Token refresh attempt")
    return auth_service.refresh(db, data.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    data: Optional[LogoutRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Invalidate the current user's refresh token."""
    return auth_service.logout(
        db,
        user_id=current_user.id,
        refresh_token=data.refresh_token if data else None
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limiter.limit("forgot-password", "1/second;2/10 seconds;3/minute"))]
)
def forgot_password(data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Email a password reset link if the account exists."""
    logger.info(f"Password reset request for email: {data.email}")
    return auth_service.forgot_password(db, data.email)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limiter.limit("reset-password", "2/second;3/10 seconds;5/minute"))]
)
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    """
    Set a new password with a reset token.

    Raises:
        400: If the token is invalid or expired
    """
    logger.info("Password reset attempt with token")
    return auth_service.reset_password(db, data.token, data.password)


@router.get("/google")
def google_auth():
    """Redirect to Google's consent screen."""
    if not google_oauth_client.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google login is not configured"
        )

    state = google_oauth_client.generate_state()
    response = RedirectResponse(
        google_oauth_client.authorization_url(state),
        status_code=status.HTTP_302_FOUND
    )
    response.set_cookie(
        key=settings.OAUTH_STATE_COOKIE,
        value=state,
        max_age=600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return response


@router.get("/google/callback")
def google_auth_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Complete Google sign-in and hand the tokens to the frontend.

    Success redirects to `{FRONTEND_URL}/auth/callback` with the tokens in the
    query string; any failure redirects to `{FRONTEND_URL}/auth/error`.
    """
    frontend_url = settings.FRONTEND_URL.rstrip("/")
    expected_state = request.cookies.get(settings.OAUTH_STATE_COOKIE)

    try:
        if error:
            raise ValueError(f"Google authentication failed: {error}")
        if not code or not state or not expected_state or state != expected_state:
            raise ValueError("Invalid OAuth state")

        profile = google_oauth_client.fetch_profile(code)
        logger.info(f"Google OAuth callback for email: {profile.email}")
        result = auth_service.google_login(db, profile)

        query = urlencode({
            "access_token": result.access_token,
            "refresh_token": result.refresh_token,
        })
        response = RedirectResponse(f"{frontend_url}/auth/callback?{query}", status_code=status.HTTP_302_FOUND)
    except Exception as e:
        logger.error(f"Google OAuth callback error: {type(e).__name__}: {str(e)}")
        if isinstance(e, AuthError):
            message = e.message
        elif isinstance(e, GoogleOAuthError):
            message = str(e)
        else:
            message = "Authentication failed"
        query = urlencode({"message": message})
        response = RedirectResponse(f"{frontend_url}/auth/error?{query}", status_code=status.HTTP_302_FOUND)

    response.delete_cookie(settings.OAUTH_STATE_COOKIE)
    return response


@router.get("/profile", response_model=UserSummary)
def get_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Profile of the authenticated user."""
    logger.info(f"Profile request for user: {current_user.id}")
    return auth_service.get_profile(db, current_user)
