"""
Security utilities for JWT authentication and password hashing.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import hashlib
import bcrypt
from jose import JWTError, jwt
from parley.core.config import settings
from parley.core.errors import UnauthorizedError


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash password with SHA256 to support passwords longer than 72 bytes.
    Returns bytes (32 bytes) which is well under bcrypt's 72-byte limit.
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pre_hashed = _pre_hash_password(plain_password)
    try:
        return bcrypt.checkpw(pre_hashed, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with bcrypt after a SHA256 pre-hash."""
    pre_hashed = _pre_hash_password(password)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pre_hashed, salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None


class PasswordHasher:
    """Password hashing handle passed into the services."""

    def hash(self, plaintext: str) -> str:
        return get_password_hash(plaintext)

    def compare(self, plaintext: str, hashed: str) -> bool:
        return verify_password(plaintext, hashed)


class TokenIssuer:
    """JWT issuing handle passed into the services."""

    def __init__(self, expires_delta: Optional[timedelta] = None):
        self.expires_delta = expires_delta

    def issue(self, claims: dict) -> str:
        return create_access_token(claims, self.expires_delta)

    def verify(self, token: str) -> dict:
        """Return the token's claims or raise UnauthorizedError."""
        payload = decode_access_token(token) if token else None
        if not payload:
            raise UnauthorizedError("Invalid or expired token")
        return payload


def get_hasher() -> PasswordHasher:
    """Dependency for the password hasher."""
    return PasswordHasher()


def get_token_issuer() -> TokenIssuer:
    """Dependency for the token issuer."""
    return TokenIssuer()
