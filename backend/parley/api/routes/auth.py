"""
Authentication routes: registration with email codes, login and password reset.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from parley.core.security import PasswordHasher, TokenIssuer, get_hasher, get_token_issuer
from parley.db.cache import VerificationCache, get_cache
from parley.db.session import get_db
from parley.schemas.auth import (
    AuthResponse, ForgotPasswordRequest, LoginRequest, MessageOnly, RefreshTokenRequest,
    RegisterRequest, ResetPasswordRequest, Token, VerificationStarted, VerifyCodeRequest
)
from parley.services import auth_service
from parley.services.email_service import EmailSender, get_mailer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=VerificationStarted, status_code=status.HTTP_202_ACCEPTED)
async def register(
    user_data: RegisterRequest,
    db: Session = Depends(get_db),
    cache: VerificationCache = Depends(get_cache),
    mailer: EmailSender = Depends(get_mailer),
    hasher: PasswordHasher = Depends(get_hasher)
):
    """Start registration and email a verification code."""
    return auth_service.register(user_data, db, cache, mailer, hasher)


@router.post("/verify-code", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def verify_code(
    payload: VerifyCodeRequest,
    db: Session = Depends(get_db),
    cache: VerificationCache = Depends(get_cache),
    tokens: TokenIssuer = Depends(get_token_issuer)
):
    """Complete registration with the emailed code."""
    return auth_service.complete_registration(payload.redis_key, payload.verification_code, db, cache, tokens)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer)
):
    """Login and get JWT token."""
    return auth_service.login(credentials.email, credentials.password, db, hasher, tokens)


@router.post("/refresh-token", response_model=Token)
async def refresh_token(
    payload: RefreshTokenRequest,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer)
):
    """Exchange a valid token for a new one."""
    return {"access_token": auth_service.refresh_token(payload.refresh_token, db, tokens)}


@router.post("/forgot-password", response_model=VerificationStarted)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    cache: VerificationCache = Depends(get_cache),
    mailer: EmailSender = Depends(get_mailer)
):
    """Email a password recovery code."""
    return auth_service.send_reset_code(payload.email, db, cache, mailer)


@router.post("/verify-reset-code", response_model=Token)
async def verify_reset_code(
    payload: VerifyCodeRequest,
    cache: VerificationCache = Depends(get_cache),
    tokens: TokenIssuer = Depends(get_token_issuer)
):
    """Trade a recovery code for a password reset token."""
    result = auth_service.verify_reset_code(payload.redis_key, payload.verification_code, cache, tokens)
    return {"access_token": result["token"]}


@router.post("/reset-password", response_model=MessageOnly)
async def reset_password(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer)
):
    """Set a new password using a reset token."""
    return auth_service.reset_password(payload.token, payload.new_password, db, hasher, tokens)
