from .auth import auth_service
from .email import email_service
from .google_oauth import google_oauth_client

__all__ = ["auth_service", "email_service", "google_oauth_client"]
