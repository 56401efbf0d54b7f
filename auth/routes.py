"""
Auth API routes — register, login, user listing and service status.

Route prefix: /auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from auth.dependencies import get_auth_service, get_current_claims, get_status_service
from auth.errors import InvalidCredentials, UserAlreadyExists
from auth.models import SanitizedUser
from auth.service import AuthService
from auth.status import StatusService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=20)
    password: str = Field(..., min_length=6, max_length=50)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterResponse(BaseModel):
    message: str
    user: SanitizedUser


class LoginResponse(BaseModel):
    message: str
    user: SanitizedUser
    access_token: str
    token_type: str
    expires_in: int


class UserListResponse(BaseModel):
    message: str
    total: int
    users: List[SanitizedUser]


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    req: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Register a new user."""
    try:
        user = await service.register(req.username, req.password)
    except UserAlreadyExists as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        )
    return {"message": "User registered successfully", "user": user}


@router.post("/login", response_model=LoginResponse)
async def login(
    req: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Login with username + password."""
    try:
        result = await service.login(req.username, req.password)
    except InvalidCredentials as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        )
    return {
        "message": "Authentication successful",
        "user": result.user,
        "access_token": result.access_token,
        "token_type": result.token_type,
        "expires_in": result.expires_in,
    }


@router.get("/users", response_model=UserListResponse)
async def list_users(
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    users = await service.list_users()
    return {"message": "Registered users", "total": len(users), "users": users}


@router.get("/me")
async def me(claims: Dict[str, Any] = Depends(get_current_claims)) -> Dict[str, Any]:
    return {"id": claims["sub"], "username": claims["username"]}


# ── Status ─────────────────────────────────────────────────────────────


@router.get("/status")
async def service_status(
    status_service: StatusService = Depends(get_status_service),
) -> Dict[str, Any]:
    return status_service.status()


@router.get("/ping")
async def ping(
    status_service: StatusService = Depends(get_status_service),
) -> Dict[str, Any]:
    return status_service.ping()


@router.get("/database/status")
async def database_status(
    status_service: StatusService = Depends(get_status_service),
) -> Dict[str, Any]:
    return {
        "message": "Database status",
        "database": await status_service.database_status(),
    }


@router.get("/stats")
async def stats(
    status_service: StatusService = Depends(get_status_service),
) -> Dict[str, Any]:
    return {
        "message": "System statistics",
        "statistics": await status_service.system_stats(),
    }


@router.get("/health")
async def health(
    status_service: StatusService = Depends(get_status_service),
) -> Dict[str, Any]:
    """Full health check: database probe, stats and service breakdown."""
    return await status_service.health()
