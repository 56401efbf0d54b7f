"""
Credential service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_middleware
from auth.jwt import JoseTokenIssuer, TokenIssuer
from auth.routes import router as auth_router
from auth.service import AuthService
from auth.status import StatusService
from auth.store import CredentialStore
from config.settings import Settings, config
from database.session import build_engine, build_session_factory, init_db
from database.user_store import SqlCredentialStore

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "asyncio", "aiosqlite", "multipart"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(
    store: Optional[CredentialStore] = None,
    settings: Settings = config,
    token_issuer: Optional[TokenIssuer] = None,
) -> FastAPI:
    """
    Build the application.

    Without an injected *store* a SQL-backed store is created from
    ``settings.database_url`` and its tables are created on startup.
    Without a *token_issuer* tokens are HS256 JWTs signed with
    ``settings.jwt_secret``.
    """
    app = FastAPI(
        title=settings.service_name,
        version=settings.service_version,
        description="Username/password registration and JWT login.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)

    engine = None
    if store is None:
        engine = build_engine(settings.database_url, echo=settings.database_echo)
        store = SqlCredentialStore(build_session_factory(engine))

    if token_issuer is None:
        token_issuer = JoseTokenIssuer(settings.jwt_secret, settings.jwt_algorithm)
    app.state.token_issuer = token_issuer
    app.state.auth_service = AuthService(
        store,
        token_issuer,
        bcrypt_rounds=settings.bcrypt_rounds,
        token_expiry_seconds=settings.jwt_expiry_seconds,
        issuer=settings.jwt_issuer,
    )
    app.state.status_service = StatusService(
        store,
        service_name=settings.service_name,
        service_version=settings.service_version,
    )

    # Routes
    app.include_router(auth_router, prefix="/auth")

    @app.on_event("startup")
    async def on_startup():
        if engine is not None:
            logger.info("Creating credential store tables…")
            await init_db(engine)
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        if engine is not None:
            await engine.dispose()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
