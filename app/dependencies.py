from fastapi import Depends, HTTPException, status, Request
from jose import JWTError
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.core.security import token_issuer
from app.crud.user import user as user_crud


def get_bearer_token(request: Request) -> str:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization[len("Bearer "):].strip()


def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db)
) -> User:
    """
    Validate the access token and return the authenticated User.

    Args:
        token: Bearer access token
        db: Database session

    Returns:
        User that the token was issued to

    Raises:
        HTTPException 401: If the token is invalid or expired, or the user is
            missing, deleted, not active or locked
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = token_issuer.verify_access_token(token)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

    user = user_crud.get(db, user_id=user_id)
    if user is None:
        raise credentials_exception

    if not user.can_authenticate:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is not active or locked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user
