"""
Pydantic schemas for registration, login and password reset.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from parley.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Schema for starting a registration."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    bio: Optional[str] = Field(None, max_length=500)


class VerifyCodeRequest(BaseModel):
    """Schema for submitting an emailed verification code."""
    redis_key: str
    verification_code: str


class LoginRequest(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    """Schema for refreshing a token."""
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    """Schema for requesting a password reset code."""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Schema for setting a new password with a reset token."""
    token: str
    new_password: str = Field(..., min_length=6, max_length=128)


class VerificationStarted(BaseModel):
    """Response after a verification code was issued."""
    message: str
    redis_key: str


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    """Authenticated user with a fresh token."""
    user: UserResponse
    token: str


class MessageOnly(BaseModel):
    """Plain acknowledgement."""
    message: str
