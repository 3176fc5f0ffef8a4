import hashlib
import secrets
import uuid
from typing import Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
import bcrypt
from app.core.config import settings

# Seconds per unit for duration strings such as "15m" or "7d"
EXPIRATION_UNITS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}
DEFAULT_EXPIRATION_SECONDS = 3600

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def parse_expiration(expiration: Optional[str]) -> int:
    """
    Convert a duration string like '30s', '15m', '1h' or '7d' to seconds.

    A bare number is taken as seconds. Anything else falls back to one hour.
    """
    if not expiration:
        return DEFAULT_EXPIRATION_SECONDS
    value = expiration.strip()
    if value.isdigit():
        return int(value)

    amount, unit = value[:-1], value[-1]
    if unit not in EXPIRATION_UNITS or not amount.isdigit():
        return DEFAULT_EXPIRATION_SECONDS
    return int(amount) * EXPIRATION_UNITS[unit]


def generate_reset_token() -> str:
    """Return 32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PasswordHasher:
    """
    bcrypt hashing for passwords and stored refresh tokens.

    Refresh tokens are JWTs well over bcrypt's 72 byte input limit, and two
    tokens for the same user share a long common prefix. They are reduced to
    a SHA-256 hex digest before hashing so every byte of the token counts.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        password_bytes = password.encode('utf-8')[:BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password_bytes, salt).decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        password_bytes = plain_password.encode('utf-8')[:BCRYPT_MAX_BYTES]
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))

    def hash_token(self, token: str) -> str:
        return self.hash_password(self._digest(token))

    def verify_token(self, token: str, hashed_token: str) -> bool:
        return self.verify_password(self._digest(token), hashed_token)

    @staticmethod
    def _digest(token: str) -> str:
        return hashlib.sha256(token.encode('utf-8')).hexdigest()


class TokenIssuer:
    """
    Issues and verifies signed access and refresh tokens.

    Access and refresh tokens are signed with different secrets and carry
    different lifetimes, so one can never be redeemed as the other.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_expiration: str = "1h",
        refresh_expiration: str = "7d",
        algorithm: str = "HS256"
    ):
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_expires_in = parse_expiration(access_expiration)
        self.refresh_expires_in = parse_expiration(refresh_expiration)
        self.algorithm = algorithm

    def create_access_token(self, claims: dict, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token.

        Args:
            claims: User claims (sub, email, role, tenant_id)
            expires_delta: Optional custom lifetime. Defaults to the configured access lifetime.

        Returns:
            Encoded JWT token string
        """
        lifetime = expires_delta or timedelta(seconds=self.access_expires_in)
        return self._encode(claims, self.access_secret, lifetime)

    def create_refresh_token(self, claims: dict, expires_delta: Optional[timedelta] = None) -> str:
        lifetime = expires_delta or timedelta(seconds=self.refresh_expires_in)
        return self._encode(claims, self.refresh_secret, lifetime)

    def verify_access_token(self, token: str) -> dict:
        """
        Verify and decode an access token.

        Raises:
            JWTError: If token is invalid or expired
        """
        return jwt.decode(token, self.access_secret, algorithms=[self.algorithm])

    def verify_refresh_token(self, token: str) -> dict:
        """
        Verify and decode a refresh token.

        Raises:
            JWTError: If token is invalid or expired
        """
        return jwt.decode(token, self.refresh_secret, algorithms=[self.algorithm])

    def _encode(self, claims: dict, secret: str, lifetime: timedelta) -> str:
        now = utcnow()
        to_encode = claims.copy()
        # jti keeps two tokens issued in the same second distinct
        to_encode.update({
            "iat": now,
            "exp": now + lifetime,
            "jti": uuid.uuid4().hex,
        })
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)


password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)

token_issuer = TokenIssuer(
    access_secret=settings.JWT_ACCESS_SECRET,
    refresh_secret=settings.JWT_REFRESH_SECRET,
    access_expiration=settings.JWT_ACCESS_EXPIRATION,
    refresh_expiration=settings.JWT_REFRESH_EXPIRATION,
    algorithm=settings.ALGORITHM,
)

__all__ = [
    "JWTError",
    "PasswordHasher",
    "TokenIssuer",
    "generate_reset_token",
    "parse_expiration",
    "password_hasher",
    "token_issuer",
    "utcnow",
]
