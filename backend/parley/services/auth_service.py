"""
Registration, login and password reset with emailed verification codes.
"""
import hashlib
import json
import logging
import secrets
import time
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from parley.core.config import settings
from parley.core.errors import (
    AppError, BadRequestError, ConflictError, NotFoundError, UnauthorizedError
)
from parley.core.security import PasswordHasher, TokenIssuer
from parley.db.cache import VerificationCache
from parley.models.user import User
from parley.schemas.auth import RegisterRequest
from parley.services.email_service import EmailSender, send_code_quietly

logger = logging.getLogger(__name__)

REGISTER_PURPOSE = "register"
RESET_PURPOSE = "password-reset"


def verification_key(purpose: str, email: str) -> str:
    """Stable cache key for a purpose/email pair."""
    return hashlib.sha256(f"{purpose}:{email}".encode("utf-8")).hexdigest()


def generate_code() -> str:
    return f"{100000 + secrets.randbelow(900000)}"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _issue_entry(cache: VerificationCache, purpose: str, email: str, payload: dict) -> tuple:
    """Store a fresh code for ``email`` and return (key, code)."""
    ttl = settings.VERIFICATION_CODE_TTL_SECONDS
    code = generate_code()
    key = verification_key(purpose, email)
    entry = dict(payload, purpose=purpose, email=email, code=code, expires_at=_now_ms() + ttl * 1000)
    cache.set(key, entry, ttl)
    return key, code


def consume_entry(cache: VerificationCache, key: str, code: str, purpose: str, required: tuple = ()) -> dict:
    """
    Validate a submitted code against its cache entry and delete the entry.

    Expiry is checked against the entry's own ``expires_at`` even if Redis has
    not evicted it yet. Expired or unreadable entries are deleted. An entry
    issued for another purpose, or missing one of ``required``, is refused and
    left in place for the flow it belongs to.
    """
    if not key or not code:
        raise BadRequestError("Missing required fields")

    raw = cache.get(key)
    if not raw:
        raise BadRequestError("No verification data found or code expired.")

    try:
        entry = json.loads(raw)
    except (TypeError, ValueError):
        entry = None
    if not isinstance(entry, dict) or "code" not in entry or "email" not in entry:
        cache.delete(key)
        raise BadRequestError("Invalid verification data. Please start again.")

    expires_at = entry.get("expires_at")
    if not isinstance(expires_at, (int, float)) or _now_ms() > expires_at:
        cache.delete(key)
        raise BadRequestError("The verification code has expired.")

    expected = str(entry["code"]).encode("utf-8")
    if not secrets.compare_digest(expected, str(code).strip().encode("utf-8")):
        raise BadRequestError("Invalid verification code.")

    if entry.get("purpose") != purpose or any(not entry.get(field) for field in required):
        raise BadRequestError("Invalid verification data for this request.")

    try:
        cache.delete(key)
    except AppError as e:
        # The entry still expires on its own
        logger.warning(f"Failed to delete verification entry: {e.message}")
    return entry


def register(
    data: RegisterRequest,
    db: Session,
    cache: VerificationCache,
    mailer: EmailSender,
    hasher: PasswordHasher,
) -> dict:
    """Start a registration: park the hashed credentials and email a code."""
    email = data.email.lower()
    existing = db.query(User).filter(
        or_(User.email == email, User.username == data.username)
    ).first()
    if existing:
        raise ConflictError("Email or username already in use")

    key, code = _issue_entry(cache, REGISTER_PURPOSE, email, {
        "password": hasher.hash(data.password),
        "username": data.username,
        "bio": data.bio or "",
    })
    send_code_quietly(mailer, email, code)
    logger.info(f"Registration started for {email}")

    return {"message": "Verification code sent successfully!", "redis_key": key}


def complete_registration(
    redis_key: str,
    verification_code: str,
    db: Session,
    cache: VerificationCache,
    tokens: TokenIssuer,
) -> dict:
    """Create the account once the emailed code is confirmed."""
    entry = consume_entry(cache, redis_key, verification_code, REGISTER_PURPOSE, required=("password", "username"))

    user = User(
        username=entry["username"],
        email=entry["email"],
        hashed_password=entry["password"],
        bio=entry.get("bio") or "",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email or username already exists.")
    db.refresh(user)
    logger.info(f"User {user.id} registered")

    return {"user": user, "token": tokens.issue({"id": user.id})}


def login(email: str, password: str, db: Session, hasher: PasswordHasher, tokens: TokenIssuer) -> dict:
    """Check credentials and issue a token."""
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not hasher.compare(password, user.hashed_password):
        raise UnauthorizedError("Incorrect email or password")

    return {"user": user, "token": tokens.issue({"id": user.id})}


def refresh_token(token: str, db: Session, tokens: TokenIssuer) -> str:
    """Exchange a valid token for a fresh one."""
    claims = tokens.verify(token)
    user = db.query(User).filter(User.id == claims.get("id")).first() if claims.get("id") else None
    if not user:
        raise UnauthorizedError("Invalid refresh token")
    return tokens.issue({"id": user.id})


def send_reset_code(email: str, db: Session, cache: VerificationCache, mailer: EmailSender) -> dict:
    """Email a password recovery code to an existing account."""
    email = email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError("User not found")

    key, code = _issue_entry(cache, RESET_PURPOSE, email, {})
    send_code_quietly(mailer, email, code)

    return {"message": "Password recovery code sent successfully!", "redis_key": key}


def verify_reset_code(redis_key: str, verification_code: str, cache: VerificationCache, tokens: TokenIssuer) -> dict:
    """Trade a valid reset code for a short token carrying the email."""
    entry = consume_entry(cache, redis_key, verification_code, RESET_PURPOSE)
    return {"token": tokens.issue({"email": entry["email"]})}


def reset_password(
    token: str,
    new_password: str,
    db: Session,
    hasher: PasswordHasher,
    tokens: TokenIssuer,
) -> dict:
    """Set a new password for the account named in a reset token."""
    claims = tokens.verify(token)
    email: Optional[str] = claims.get("email")
    if not email:
        raise UnauthorizedError("Invalid or expired token.")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError("User not found")

    user.hashed_password = hasher.hash(new_password)
    db.commit()
    logger.info(f"Password reset for user {user.id}")

    return {"message": "Password reset successfully!"}
