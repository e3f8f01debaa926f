import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .errors import ConflictError, ForbiddenError, UnauthorizedError
from .models import User, UserRole

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    """
    Verify a bearer token's HS256 signature and expiry.

    Raises:
        UnauthorizedError: If the token is malformed, expired or badly signed
    """
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise UnauthorizedError("Invalid token format. Expected a valid JWT token.")

    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise UnauthorizedError("Token has expired. Please refresh your session.") from e
    except JWTError as e:
        logger.warning(f"⚠️ Token verification failed: {str(e)}")
        raise UnauthorizedError("Token verification failed") from e


def _find_or_create_user(db: Session, claims: dict) -> User:
    subject = claims.get("sub")
    email = claims.get("email")
    name = claims.get("name") or None

    if not subject:
        logger.error(f"❌ Token missing subject claim. Available claims: {list(claims.keys())}")
        raise UnauthorizedError("Invalid token claims")

    user = db.query(User).filter(User.auth_subject == subject).first()
    if user:
        return user

    # Same person signing in through another identity provider
    if email:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.info(f"🔄 Linking user {email} to new auth subject")
            existing_user.auth_subject = subject
            if name and not existing_user.full_name:
                existing_user.full_name = name
            db.commit()
            db.refresh(existing_user)
            return existing_user

    logger.info(f"🆕 Creating new user: {email}")
    user = User(
        auth_subject=subject,
        email=email or f"{subject}@users.reparaya.invalid",
        full_name=name,
        role=UserRole.CLIENT.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"❌ Email {email} was taken by another account (race condition)")
        raise ConflictError(
            "This email is already registered. Please sign in with your existing account."
        ) from e
    db.refresh(user)
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get (or provision) the user behind the bearer token"""
    if not credentials:
        raise UnauthorizedError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    claims = decode_access_token(credentials.credentials)
    user = _find_or_create_user(db, claims)
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like ``get_current_user`` but anonymous requests resolve to None"""
    if not credentials:
        return None
    return await get_current_user(credentials, db)


def require_roles(*roles: UserRole):
    """
    Create a dependency that only lets the given roles through.

    Example usage:
        @router.get("/admin/services")
        async def list_services(admin: User = Depends(require_roles(UserRole.ADMIN))):
            ...
    """
    allowed = {role.value for role in roles}

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            logger.warning(f"⚠️ User {user.id} with role {user.role} denied, needs {sorted(allowed)}")
            raise ForbiddenError(
                "You do not have permission to perform this action",
                required_role=" or ".join(sorted(allowed)),
            )
        return user

    return role_checker
