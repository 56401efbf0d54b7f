"""
FastAPI dependencies for authentication.

Services are built once in ``create_app`` and stored on ``app.state``;
these helpers hand them to the route handlers.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.errors import InvalidCredentials
from auth.jwt import TokenIssuer
from auth.service import AuthService
from auth.status import StatusService

_bearer_scheme = HTTPBearer()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_status_service(request: Request) -> StatusService:
    return request.app.state.status_service


def get_current_claims(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> Dict[str, Any]:
    """
    Verify the Bearer token and return its claims.
    """
    issuer: TokenIssuer = request.app.state.token_issuer
    auth_service: AuthService = request.app.state.auth_service
    try:
        return issuer.verify(credentials.credentials, auth_service.issuer)
    except InvalidCredentials as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
