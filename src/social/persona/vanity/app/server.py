"""
Web Application Assembly

create_app wires routes, middleware and templates onto an aiohttp Application.
start_web_server adds the cleanup contexts that own the process-wide
resources:

- database_context: SQLAlchemy async engine and session factory
- http_session_context: aiohttp ClientSession for AppView and webhook calls
- metrics_context: the configured MetricsClient

Each context opens its resource on startup and releases it on shutdown, in
reverse order of registration.
"""

import logging
from time import time
from typing import Optional
import jinja2
from aiohttp import web
import aiohttp_jinja2
import aiohttp
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from social.persona.vanity.app.config import (
    BlockedTermsAppKey,
    DatabaseAppKey,
    DatabaseSessionMakerAppKey,
    MetricsClientAppKey,
    SessionAppKey,
    Settings,
    SettingsAppKey,
)
from social.persona.vanity.app.handlers.claim import (
    handle_claim_page,
    handle_profile_page,
)
from social.persona.vanity.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_ready,
)
from social.persona.vanity.app.handlers.well_known import (
    handle_well_known_did,
    handle_well_known_host,
)
from social.persona.vanity.app.metrics import create_metrics_client

logger = logging.getLogger(__name__)


async def database_context(app: web.Application):
    settings = app[SettingsAppKey]
    engine = create_async_engine(str(settings.pg_dsn), pool_pre_ping=True)
    app[DatabaseAppKey] = engine
    app[DatabaseSessionMakerAppKey] = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    logger.info("Database engine ready")

    yield

    await engine.dispose()


def client_trace_config(debug: bool) -> aiohttp.TraceConfig:
    """Trace outbound requests when running in debug mode."""
    trace_config = aiohttp.TraceConfig()
    if not debug:
        return trace_config

    async def on_request_start(
        session, trace_config_ctx, params: aiohttp.TraceRequestStartParams
    ):
        logger.debug("outbound request %s %s", params.method, params.url)

    async def on_request_end(
        session, trace_config_ctx, params: aiohttp.TraceRequestEndParams
    ):
        logger.debug(
            "outbound response %s %s: %s",
            params.method,
            params.url,
            params.response.status,
        )

    trace_config.on_request_start.append(on_request_start)
    trace_config.on_request_end.append(on_request_end)
    return trace_config


async def http_session_context(app: web.Application):
    settings = app[SettingsAppKey]
    http_session = aiohttp.ClientSession(
        trace_configs=[client_trace_config(settings.debug)]
    )
    app[SessionAppKey] = http_session

    yield

    await http_session.close()


async def metrics_context(app: web.Application):
    settings = app[SettingsAppKey]
    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        debug=settings.debug,
    )
    await metrics_client.connect()
    app[MetricsClientAppKey] = metrics_client

    yield

    await metrics_client.close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise


@web.middleware
async def metrics_middleware(request: web.Request, handler):
    """Record a timing and a status-tagged count for every request."""
    metrics_client = request.app[MetricsClientAppKey]
    prefix = request.app[SettingsAppKey].statsd_prefix

    # Tag with the route template so per-username paths share one series.
    resource = request.match_info.route.resource
    path = resource.canonical if resource is not None else "unmatched"
    tags = {"path": path, "method": request.method}

    started = time()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as e:
        status = e.status
        raise
    except Exception as e:
        metrics_client.increment(
            f"{prefix}.server.request.exception",
            1,
            tag_dict={**tags, "exception": type(e).__name__},
        )
        raise
    finally:
        metrics_client.timer(f"{prefix}.server.request.time", time() - started, tags)
        metrics_client.increment(
            f"{prefix}.server.request.count", 1, tag_dict={**tags, "status": status}
        )


def create_app(settings: Settings) -> web.Application:
    """
    Build the web application with its routes, middleware and templates.

    Shared resources (database, HTTP client, metrics) are attached by the
    cleanup contexts that start_web_server registers.
    """
    app = web.Application(middlewares=[metrics_middleware, sentry_middleware])

    app[SettingsAppKey] = settings
    app[BlockedTermsAppKey] = settings.load_blocked_terms()
    logger.info("Loaded %d blocked terms", len(app[BlockedTermsAppKey]))

    # Fixed paths are registered first so they win over the
    # {domain}/{username} patterns.
    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
            web.get("/.well-known/atproto-did", handle_well_known_host),
            web.get(
                "/{domain}/{username}/.well-known/atproto-did", handle_well_known_did
            ),
            web.get("/{domain}/{username}", handle_profile_page),
            web.get("/{domain}", handle_claim_page),
        ]
    )

    aiohttp_jinja2.setup(
        app,
        enable_async=True,
        loader=jinja2.PackageLoader("social.persona.vanity.app", "templates"),
    )

    return app


async def start_web_server(settings: Optional[Settings] = None) -> web.Application:
    if settings is None:
        settings = Settings()  # type: ignore

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=True,
            integrations=[AioHttpIntegration()],
        )

    app = create_app(settings)
    app.cleanup_ctx.extend([database_context, http_session_context, metrics_context])
    return app
