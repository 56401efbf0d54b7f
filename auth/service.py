"""
Credential management and session issuance.

``AuthService`` registers users, validates logins and builds the token
payload handed to the token issuer.  It keeps no state of its own beyond
its collaborators, so one instance can serve concurrent requests.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from auth.errors import DuplicateKey, InvalidCredentials, UserAlreadyExists
from auth.jwt import TokenIssuer
from auth.models import LoginResult, SanitizedUser, TokenPayload
from auth.password import DEFAULT_ROUNDS, hash_password, verify_password
from auth.store import CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_EXPIRY_SECONDS = 3600
DEFAULT_TOKEN_ISSUER = "sena-auth-service"


class AuthService:
    def __init__(
        self,
        store: CredentialStore,
        token_issuer: TokenIssuer,
        *,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
        token_expiry_seconds: int = DEFAULT_TOKEN_EXPIRY_SECONDS,
        issuer: str = DEFAULT_TOKEN_ISSUER,
    ) -> None:
        self._store = store
        self._token_issuer = token_issuer
        self._bcrypt_rounds = bcrypt_rounds
        self._token_expiry_seconds = token_expiry_seconds
        self._issuer = issuer
        self._dummy_hash: Optional[str] = None

    @property
    def issuer(self) -> str:
        return self._issuer

    async def register(self, username: str, password: str) -> SanitizedUser:
        """
        Create a user and return it without its password hash.

        The lookup is only a fast path; the store's unique constraint on
        ``insert`` decides races between concurrent registrations.
        """
        if await self._store.find_by_username(username) is not None:
            logger.info("Registration rejected, username taken: %s", username)
            raise UserAlreadyExists(username)

        password_hash = await asyncio.to_thread(hash_password, password, self._bcrypt_rounds)
        try:
            record = await self._store.insert(
                username, password_hash, datetime.now(timezone.utc)
            )
        except DuplicateKey as exc:
            logger.info("Registration lost insert race for %s", username)
            raise UserAlreadyExists(username) from exc

        logger.info("Registered user %s (%s)", record.username, record.id)
        return record.sanitized()

    async def login(self, username: str, password: str) -> LoginResult:
        """Verify credentials and issue a signed access token."""
        record = await self._store.find_by_username(username)

        if record is None:
            # Burn a comparable amount of work so timing does not reveal
            # whether the username exists.
            await asyncio.to_thread(verify_password, password, await self._get_dummy_hash())
            logger.info("Login failed for %s", username)
            raise InvalidCredentials()

        if not await asyncio.to_thread(verify_password, password, record.password_hash):
            logger.info("Login failed for %s", username)
            raise InvalidCredentials()

        user = record.sanitized()
        payload = TokenPayload(sub=str(user.id), username=user.username)
        access_token = self._token_issuer.sign(
            payload.to_claims(), self._token_expiry_seconds, self._issuer
        )
        logger.info("Login: %s (%s)", user.username, user.id)

        return LoginResult(
            user=user,
            payload=payload,
            access_token=access_token,
            expires_in=self._token_expiry_seconds,
        )

    async def list_users(self) -> List[SanitizedUser]:
        return [record.sanitized() for record in await self._store.list_all()]

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(
                hash_password, "dummy-password", self._bcrypt_rounds
            )
        return self._dummy_hash
