"""
Access token signing and verification.

The auth service only builds the claims; signing is delegated to a
``TokenIssuer`` so the algorithm can be swapped without touching it.
The default issuer signs standard JWTs with python-jose.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Protocol

from jose import JWTError, jwt

from auth.errors import InvalidCredentials


class TokenIssuer(Protocol):
    def sign(self, payload: Dict[str, Any], expires_in: int, issuer: str) -> str:
        ...

    def verify(self, token: str, issuer: str) -> Dict[str, Any]:
        """Return the claims of *token*; raise ``InvalidCredentials`` if it is not valid."""
        ...


class JoseTokenIssuer:
    """HMAC-signed JWTs (``HS256`` by default)."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def sign(self, payload: Dict[str, Any], expires_in: int, issuer: str) -> str:
        now = datetime.now(timezone.utc)
        claims = dict(payload)
        claims.update(
            iat=now,
            exp=now + timedelta(seconds=expires_in),
            iss=issuer,
        )
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str, issuer: str) -> Dict[str, Any]:
        """
        Decode *token* and return its claims.

        Raises ``InvalidCredentials`` on a bad signature, a foreign issuer
        or an expired token.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=issuer,
            )
        except JWTError as exc:
            raise InvalidCredentials("Invalid or expired token") from exc
