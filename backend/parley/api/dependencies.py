"""
Shared API dependencies: authentication and role checks.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from parley.core.errors import ForbiddenError, UnauthorizedError
from parley.core.security import TokenIssuer, get_token_issuer
from parley.db.session import get_db
from parley.models.user import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to a user."""
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")

    claims = tokens.verify(credentials.credentials)
    user_id = claims.get("id")
    if not user_id:
        raise UnauthorizedError("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthorizedError("User not found")
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Restrict a route to admin accounts."""
    if current_user.role != UserRole.ADMIN:
        raise ForbiddenError("You do not have permission to perform this action")
    return current_user
