"""
Test configuration for pytest
"""

import os

# Test environment variables, set before the app modules read them
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdefghij"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdefghij"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["GOOGLE_CLIENT_ID"] = "test-google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-google-client-secret"
os.environ["FRONTEND_URL"] = "http://frontend.test"

from typing import Generator, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers the tables on Base.metadata
from app.core.security import PasswordHasher, TokenIssuer
from app.crud.tenant import tenant as tenant_crud
from app.crud.user import user as user_crud
from app.database import Base, get_db
from app.models.user import User, UserRole, UserStatus
from app.services.auth import AuthService, auth_service
from main import app as fastapi_app


# In-memory SQLite shared by every connection, so TestClient threads see the same data
test_engine = create_engine(
    "sqlite://",
    echo=False,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False, future=True)

PASSWORD = "Secret123!"


class FakeEmailService:
    """Records emails instead of sending them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, str, str]] = []

    def send_password_reset_email(self, email: str, reset_token: str) -> None:
        if self.fail:
            raise ConnectionRefusedError("SMTP unavailable")
        self.sent.append(("reset", email, reset_token))

    def send_welcome_email(self, email: str, admin_name: str) -> None:
        if self.fail:
            raise ConnectionRefusedError("SMTP unavailable")
        self.sent.append(("welcome", email, admin_name))

    def last(self, kind: str) -> Tuple[str, str, str]:
        return [item for item in self.sent if item[0] == kind][-1]


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    Base.metadata.create_all(test_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(test_engine)


@pytest.fixture
def emails() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(
        access_secret=os.environ["JWT_ACCESS_SECRET"],
        refresh_secret=os.environ["JWT_REFRESH_SECRET"],
        access_expiration="1h",
        refresh_expiration="7d",
    )


@pytest.fixture
def service(emails: FakeEmailService, token_issuer: TokenIssuer) -> AuthService:
    return AuthService(
        hasher=PasswordHasher(rounds=4),
        tokens=token_issuer,
        emails=emails,
        max_failed_attempts=5,
        lockout_minutes=30,
        reset_token_minutes=60,
    )


@pytest.fixture
def make_user(db: Session):
    """Create a tenant with one user, bypassing registration."""
    hasher = PasswordHasher(rounds=4)
    counter = {"n": 0}

    def _make_user(
        email: str = "user@example.com",
        password: str = PASSWORD,
        role: UserRole = UserRole.admin,
        status: UserStatus = UserStatus.active,
    ) -> User:
        counter["n"] += 1
        tenant, user = tenant_crud.create_with_user(
            db=db,
            company_name=f"Tenant {counter['n']}",
            company_type="corporate",
            jurisdiction="UK",
            email=email,
            password_hash=hasher.hash_password(password),
            first_name="Jane",
            last_name="Doe",
        )
        if status != UserStatus.active or role != UserRole.admin:
            user = user_crud.update(db, db_obj=user, obj_in={"status": status, "role": role})
        return user

    return _make_user


@pytest.fixture
def client(db: Session, emails: FakeEmailService, monkeypatch) -> Generator[TestClient, None, None]:
    """TestClient bound to the test session, with email captured."""

    def override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(auth_service, "emails", emails)
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def failing_service(token_issuer: TokenIssuer) -> AuthService:
    """AuthService whose every email send fails."""
    return AuthService(
        hasher=PasswordHasher(rounds=4),
        tokens=token_issuer,
        emails=FakeEmailService(fail=True),
    )
