"""
FastAPI application factory.
create_app() is the single entry point for building the app.

Every collaborator (stores, customs gate, mailer, push, services) is built
in the lifespan and stored on app.state, so tests can swap any of them.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.metrics_context import MetricsContextStore
from infrastructure.cache.redis_client import create_redis_client
from infrastructure.customs.factory import build_customs_gate
from infrastructure.email.zeptomail import ZeptoMailMailer
from infrastructure.http_client import HttpClient
from infrastructure.push.http_push import HttpPushNotifier
from repositories.account_store import MongoAccountStore
from repositories.mongo_collections import ensure_indexes
from repositories.token_store import MongoTokenStore
from routes.account_routes import router as account_router
from routes.health_routes import router as health_router
from routes.password_routes import router as password_router
from services.account_reset import AccountResetService
from services.notifications import NotificationFanout
from services.password_change import PasswordChangeService
from services.password_reset import PasswordResetService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
            environment=settings.env,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(settings.db.mongodb_uri)
        db = mongo_client[settings.db.db_name]
        await ensure_indexes(db)
        redis_client = await create_redis_client(settings.redis)

        app.state.settings = settings
        app.state.mongo_client = mongo_client
        app.state.db = db
        app.state.redis = redis_client

        tokens = MongoTokenStore(db, settings.tokens)
        accounts = MongoAccountStore(db)
        customs = build_customs_gate(settings.customs)
        mail_http = HttpClient(timeout=10.0, service="mail")
        push_http = HttpClient(timeout=settings.push.push_timeout_seconds, service="push")
        notifications = NotificationFanout(
            ZeptoMailMailer(settings.email, mail_http, app_url=settings.app_url),
            HttpPushNotifier(push_http, ttl_seconds=settings.push.push_ttl_seconds),
        )
        metrics_contexts = MetricsContextStore(
            redis_client, ttl_seconds=settings.redis.metrics_context_ttl_seconds
        )

        app.state.token_store = tokens
        app.state.account_store = accounts
        app.state.customs = customs
        app.state.password_reset_service = PasswordResetService(
            tokens,
            accounts,
            customs,
            notifications,
            metrics_contexts,
            redirect_domain=settings.redirect_domain,
        )
        app.state.password_change_service = PasswordChangeService(
            tokens, accounts, customs, notifications, settings.tokens
        )
        app.state.account_reset_service = AccountResetService(
            tokens, accounts, customs, notifications, settings.tokens
        )
        log.info("app_started", env=settings.env, customs=settings.customs.enabled)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await customs.aclose()
        await mail_http.aclose()
        await push_http.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(password_router)
    app.include_router(account_router)

    return app
