"""
Google OAuth 2.0 client for the sign-in-with-Google flow.

Builds the consent screen URL and exchanges the callback code for the
user's Google profile. Account lookup and token issuance happen afterwards
in the auth service.
"""

import secrets
import httpx
from typing import Optional
from urllib.parse import urlencode
from app.core.config import settings
from app.core.logging_config import logger
from app.schemas.auth import GoogleProfile


class GoogleOAuthError(Exception):
    """Raised when the code exchange or profile lookup fails."""


class GoogleOAuthClient:
    """Client for Google's OAuth 2.0 endpoints."""

    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
    SCOPE = "openid email profile"

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize Google OAuth client.

        Args:
            client_id: OAuth client ID from the Google console
            client_secret: OAuth client secret
            redirect_uri: Callback URL registered with Google
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used to stub Google in tests)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.transport = transport
        if not self.enabled:
            logger.warning("Google OAuth credentials not set - Google login disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @staticmethod
    def generate_state() -> str:
        return secrets.token_urlsafe(32)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.SCOPE,
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{self.AUTH_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> GoogleProfile:
        """
        Exchange an authorization code for the signed-in user's profile.

        Args:
            code: Authorization code from the callback query string

        Returns:
            GoogleProfile with email, names and Google account id

        Raises:
            GoogleOAuthError: If Google rejects the code or returns an unusable profile
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                token_response = client.post(
                    self.TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise GoogleOAuthError("Google did not return an access token")

                userinfo_response = client.get(
                    self.USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                userinfo_response.raise_for_status()
                userinfo = userinfo_response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Google OAuth HTTP error: {e.response.status_code} - {e.response.text}")
            raise GoogleOAuthError("Google authentication failed") from e
        except httpx.HTTPError as e:
            logger.error(f"Google OAuth request failed: {type(e).__name__}: {str(e)}")
            raise GoogleOAuthError("Google authentication failed") from e

        return self._parse_userinfo(userinfo)

    @staticmethod
    def _parse_userinfo(userinfo: dict) -> GoogleProfile:
        email = userinfo.get("email")
        google_id = userinfo.get("id") or userinfo.get("sub")
        if not email or not google_id:
            raise GoogleOAuthError("Google profile is missing email or id")
        if userinfo.get("verified_email") is False or userinfo.get("email_verified") is False:
            raise GoogleOAuthError("Google email address is not verified")

        return GoogleProfile(
            email=email,
            first_name=userinfo.get("given_name") or "",
            last_name=userinfo.get("family_name") or "",
            google_id=str(google_id),
        )


google_oauth_client = GoogleOAuthClient(
    client_id=settings.GOOGLE_CLIENT_ID,
    client_secret=settings.GOOGLE_CLIENT_SECRET,
    redirect_uri=settings.GOOGLE_CALLBACK_URL,
)
