# ============================================================================
# FILE: booking_api/api/dependencies.py
# Caller identity from bearer tokens issued by the external auth provider
# ============================================================================
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from booking_api.config.settings import settings

# ============================================================================
# Security Schemes
# ============================================================================

jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token"
)


class UserType(str, enum.Enum):
    CLIENT = "CLIENT"
    BUSINESS_OWNER = "BUSINESS_OWNER"
    STAFF = "STAFF"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as described by the access token claims"""
    user_id: str
    user_type: UserType
    business_id: Optional[str] = None

    @property
    def is_business(self) -> bool:
        return self.user_type in (UserType.BUSINESS_OWNER, UserType.STAFF)


# ============================================================================
# JWT Token Functions
# ============================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Token issuance belongs to the auth provider; this helper mints tokens with
    the same claims for local tooling and tests.

    Args:
        data: Dictionary with claims ('sub', 'role' and, for business roles, 'business_id')
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access"
    })

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


# ============================================================================
# Authentication Dependencies
# ============================================================================

async def get_current_principal(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security)
) -> Principal:
    """
    Dependency to get the caller from the bearer token.

    Raises:
        HTTPException 401: If token is invalid or lacks identity claims
    """
    payload = verify_access_token(credentials.credentials)

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_type = UserType(str(role).upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role in token: {role}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal(user_id=str(user_id), user_type=user_type, business_id=payload.get("business_id"))


async def require_client(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Only clients book and manage their own appointments"""
    if principal.user_type != UserType.CLIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Client account required"
        )
    return principal


async def require_business_member(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Business owner or staff acting for their business"""
    if not principal.is_business or not principal.business_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User not associated with a business"
        )
    return principal
