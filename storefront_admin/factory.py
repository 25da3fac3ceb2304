"""Application factory for the storefront admin API."""
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy.engine import Engine

from . import config
from .app_logging import setup_logger
from .db import create_tables, make_engine, make_session_factory
from .fastapi.routes import router
from .mail import MailSession
from .roster import AdminRoster
from .services.identity import IdentityProvider, SQLIdentityProvider
from .services.rowstore import RowStore, SQLRowStore

origins = ["http://localhost",
           "http://localhost:5173",
           "http://localhost:8080",
           ]


def create_app(engine: Optional[Engine] = None,
               store: Optional[RowStore] = None,
               identity: Optional[IdentityProvider] = None,
               mailer: Optional[MailSession] = None,
               testing: bool = False) -> FastAPI:
    """Build the app.

    Without arguments everything comes from :mod:`storefront_admin.config`.
    Tests pass an engine, or their own row store and identity provider.
    """
    if not testing:
        setup_logger(config.LOG_LEVEL)
    log = logging.getLogger(__name__)

    jwt_secret = config.JWT_SECRET
    if not testing and (not jwt_secret or jwt_secret == config.DEFAULT_JWT_SECRET):
        log.error("JWT_SECRET needs to be set correctly.")
        raise ValueError("JWT_SECRET is not set correctly.")

    if store is None:
        if engine is None:
            engine = make_engine()
            create_tables(engine)
        store = SQLRowStore(make_session_factory(engine))
    if mailer is None and config.MAIL_SERVER:
        mailer = MailSession(config.MAIL_SERVER, config.MAIL_PORT, config.MAIL_SENDER)
    if identity is None:
        identity = SQLIdentityProvider(store, jwt_secret, config.SESSION_DURATION,
                                       mailer=mailer,
                                       reset_ttl=config.PASSWORD_RESET_TTL)
    roster = AdminRoster(store, identity)

    log.info("AUTH_SESSION_COOKIE_NAME: %s", config.AUTH_SESSION_COOKIE_NAME)
    log.info("SESSION_DURATION: %s", config.SESSION_DURATION)
    if mailer is None and not testing:
        log.warning("MAIL_SERVER is not set. Password reset links will not be sent.")
    if not config.SECURE:
        log.warning("SECURE is off. This is for local development only.")

    app = FastAPI(
        title="storefront-admin",
        store=store,
        identity=identity,
        roster=roster,
        AUTH_SESSION_COOKIE_NAME=config.AUTH_SESSION_COOKIE_NAME,
        SESSION_DURATION=config.SESSION_DURATION,
        SECURE=config.SECURE,
        PASSWORD_RESET_REDIRECT_URL=config.PASSWORD_RESET_REDIRECT_URL,
    )

    allowed = list(origins)
    if config.CORS_ORIGINS:
        for cors_origin in config.CORS_ORIGINS.split(","):
            allowed.append(cors_origin.strip())
    log.info("cors origins: %s", ",".join(allowed))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.middleware("http")
    async def apply_response_headers(request: Request, call_next: Callable) -> Response:
        """Apply response headers to all responses.
           Prevent UI redress attacks.
        """
        response: Response = await call_next(request)
        response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
        response.headers['X-Frame-Options'] = 'DENY'
        return response

    return app
