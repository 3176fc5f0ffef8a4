"""
Tests for the Google OAuth client, with Google stubbed by an httpx transport
"""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.services.google_oauth import GoogleOAuthClient, GoogleOAuthError

USERINFO = {
    "id": "1234567890",
    "email": "ada@example.com",
    "verified_email": True,
    "given_name": "Ada",
    "family_name": "Lovelace",
}


def make_client(token_status=200, userinfo=None, userinfo_status=200):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.host == "oauth2.googleapis.com":
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "google-access-token"})
        return httpx.Response(userinfo_status, json=USERINFO if userinfo is None else userinfo)

    client = GoogleOAuthClient(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:8000/auth/google/callback",
        transport=httpx.MockTransport(handler),
    )
    return client, requests


def test_authorization_url():
    client, _ = make_client()

    url = urlparse(client.authorization_url("state-xyz"))

    assert url.netloc == "accounts.google.com"
    query = parse_qs(url.query)
    assert query["client_id"] == ["client-id"]
    assert query["state"] == ["state-xyz"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid email profile"]


def test_generate_state_is_random():
    assert GoogleOAuthClient.generate_state() != GoogleOAuthClient.generate_state()


def test_enabled_requires_both_credentials():
    assert not GoogleOAuthClient(client_id="id", client_secret=None, redirect_uri="x").enabled


def test_fetch_profile():
    client, requests = make_client()

    profile = client.fetch_profile("auth-code")

    assert profile.email == "ada@example.com"
    assert profile.first_name == "Ada"
    assert profile.last_name == "Lovelace"
    assert profile.google_id == "1234567890"

    token_request, userinfo_request = requests
    assert b"code=auth-code" in token_request.content
    assert b"grant_type=authorization_code" in token_request.content
    assert userinfo_request.headers["Authorization"] == "Bearer google-access-token"


def test_rejected_code():
    client, _ = make_client(token_status=400)

    with pytest.raises(GoogleOAuthError):
        client.fetch_profile("bad-code")


def test_userinfo_failure():
    client, _ = make_client(userinfo_status=500)

    with pytest.raises(GoogleOAuthError):
        client.fetch_profile("auth-code")


@pytest.mark.parametrize("userinfo", [
    {**USERINFO, "verified_email": False},
    {"id": "1234567890"},
    {"email": "ada@example.com"},
])
def test_unusable_profile(userinfo):
    client, _ = make_client(userinfo=userinfo)

    with pytest.raises(GoogleOAuthError):
        client.fetch_profile("auth-code")
