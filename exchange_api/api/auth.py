"""
Authentication - bearer tokens (JWT) for every API route.

Login checks bcrypt credentials and issues a token carrying the user id.
Role and organization are NOT trusted from the token; they are re-read
from the database for every request that needs them.
"""
from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import jwt

from exchange_api.config import settings
from exchange_api.db.connection import get_db_session
from exchange_api.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()

TOKEN_TYPE = "access"


# ============================================
# Pydantic Models
# ============================================

class LoginRequest(BaseModel):
    """Login request payload"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response with bearer token"""
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user_id: int
    role_id: int
    organization_id: int


# ============================================
# Token helpers
# ============================================

def create_access_token(user_id: int, role_id: int, organization_id: int) -> tuple[str, int]:
    """
    Create a bearer token for a user.

    Returns:
        Tuple of (token, expires_in_seconds)
    """
    expires_in = settings.jwt_expiration_hours * 3600
    payload = {
        "type": TOKEN_TYPE,
        "user_id": str(user_id),
        "role_id": role_id,
        "organization_id": organization_id,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    token = jwt.encode(payload, settings.session_secret, algorithm=settings.jwt_algorithm)
    return token, expires_in


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


async def get_current_user_id(
    authorization: Optional[str] = Header(None)
) -> int:
    """
    Verify bearer token and return the user id claim.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired or has
            no usable user id
    """
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Request rejected: Missing or invalid Authorization header")
        raise _unauthorized("Missing or invalid Authorization header. Use 'Bearer <token>'.")

    token = authorization[7:].strip()  # Remove "Bearer " prefix

    if not token:
        logger.warning("Request rejected: Empty token")
        raise _unauthorized("Empty token")

    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Request rejected: Token expired")
        raise _unauthorized("Token expired. Please login again.")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Request rejected: Invalid token - {str(e)}")
        raise _unauthorized("Invalid token. Please login again.")

    if payload.get("type") != TOKEN_TYPE:
        logger.warning(f"Request rejected: Invalid token type '{payload.get('type')}'")
        raise _unauthorized("Invalid token type.")

    try:
        user_id = int(payload.get("user_id"))
    except (TypeError, ValueError):
        logger.warning("Request rejected: Missing or non-numeric user_id claim")
        raise _unauthorized("Invalid token structure.")

    logger.debug(f"Token validated for user: {user_id}")
    return user_id


# ============================================
# Endpoints
# ============================================

@router.post("/auth/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """Exchange username/password for a bearer token"""
    user = await UserService.validate_credentials(db, request.username, request.password)

    if not user:
        raise _unauthorized("Invalid username or password")

    token, expires_in = create_access_token(user.id, user.role_id, user.organization_id)

    return LoginResponse(
        token=token,
        expires_in=expires_in,
        user_id=user.id,
        role_id=user.role_id,
        organization_id=user.organization_id,
    )
