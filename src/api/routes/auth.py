"""Authentication routes.

This module handles login by access code and resolves the calling Actor from
the bearer token on every request.
"""

import logging
import os
from datetime import datetime, timedelta
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from core.dependencies import AccessCodeManagerDep
from schemas.access_code import Actor, Profile
from schemas.auth import CurrentActorResponse, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# JWT configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30))  # 30 days
)

# HTTP Bearer token security
security = HTTPBearer()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Verify JWT token from Authorization header.

    Args:
        credentials: HTTP Bearer token credentials.

    Returns:
        Decoded token payload.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    if payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return payload


def get_current_actor(
    access_code_manager: AccessCodeManagerDep,
    token_payload: dict = Depends(verify_token),
) -> Actor:
    """Get the Actor behind the bearer token.

    The code is looked up again on every request, so a deactivated or
    deleted code loses access immediately.

    Raises:
        HTTPException: If the code no longer exists or is inactive.
    """
    actor = access_code_manager.get_actor(token_payload["sub"])
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access code is no longer valid",
        )
    return actor


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.profile != Profile.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )
    return actor


@router.post("/login", response_model=LoginResponse, summary="Log in with an access code")
def login(req: LoginRequest, access_code_manager: AccessCodeManagerDep) -> LoginResponse:
    actor = access_code_manager.authenticate(req.code)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid code. Check it and try again.",
        )
    token = create_access_token({"sub": actor.code_id, "profile": actor.profile.value})
    logger.info("Access code %s logged in as %s", actor.code, actor.profile.value)
    return LoginResponse(
        access_token=token,
        actor=actor,
        home_path=actor.home_path,
        badge=actor.badge,
    )


@router.get("/me", response_model=CurrentActorResponse, summary="Current access code")
def me(actor: Actor = Depends(get_current_actor)) -> CurrentActorResponse:
    return CurrentActorResponse(actor=actor, home_path=actor.home_path, badge=actor.badge)
