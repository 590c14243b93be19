import logging
from time import time
from typing import Optional
from aiohttp import web
import aiohttp
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from ceramic.nftdid.app.config import (
    MetricsClientAppKey,
    ResolverAppKey,
    SessionAppKey,
    Settings,
    SettingsAppKey,
)
from ceramic.nftdid.app.handlers.identifiers import handle_resolve_identifier
from ceramic.nftdid.app.handlers.internal import handle_internal_alive
from ceramic.nftdid.app.metrics import create_metrics_client
from ceramic.nftdid.resolve.controllers import CeramicLinkStore, LinkStore
from ceramic.nftdid.resolve.resolver import NftResolver

logger = logging.getLogger(__name__)


def trace_config(debug: bool) -> aiohttp.TraceConfig:
    config = aiohttp.TraceConfig()

    if debug:

        async def on_request_start(
            session, trace_config_ctx, params: aiohttp.TraceRequestStartParams
        ):
            logging.info("Starting request: %s", params)

        async def on_request_end(session, trace_config_ctx, params):
            logging.info("Ending request: %s", params)

        config.on_request_start.append(on_request_start)
        config.on_request_end.append(on_request_end)

    return config


async def app_resources(app):
    logger.info("Starting up")
    await app[MetricsClientAppKey].connect()
    logger.info("Startup complete")

    yield

    logger.info("Shutting down")
    await app[SessionAppKey].close()
    await app[MetricsClientAppKey].close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        response = await handler(request)
        return response
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise e


@web.middleware
async def metrics_middleware(request: web.Request, handler):
    metrics_client = request.app[MetricsClientAppKey]
    request_method: str = request.method
    # Route pattern rather than the raw path, which embeds the DID.
    resource = request.match_info.route.resource
    request_path = resource.canonical if resource is not None else request.path

    start_time: float = time()
    response_status_code = 0

    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    except Exception as e:
        metrics_client.increment(
            "nftdid.server.request.exception",
            1,
            tag_dict={
                "exception": type(e).__name__,
                "path": request_path,
                "method": request_method,
            },
        )
        raise e
    finally:
        metrics_client.timer(
            "nftdid.server.request.time",
            time() - start_time,
            tag_dict={"path": request_path, "method": request_method},
        )
        metrics_client.increment(
            "nftdid.server.request.count",
            1,
            tag_dict={
                "path": request_path,
                "method": request_method,
                "status": response_status_code,
            },
        )


async def start_web_server(
    settings: Optional[Settings] = None, link_store: Optional[LinkStore] = None
):
    """
    Build the did:nft driver application.

    The resolver is constructed here, before the application starts serving,
    so an invalid chain configuration stops startup with a ConfigError.
    """
    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=True,
            integrations=[AioHttpIntegration()],
        )

    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        debug=settings.debug,
    )

    session = aiohttp.ClientSession(trace_configs=[trace_config(settings.debug)])
    if link_store is None:
        link_store = CeramicLinkStore(session, settings.ceramic_api_url)
    try:
        resolver = NftResolver(settings.chains, link_store, session, metrics_client)
    except Exception:
        await session.close()
        raise

    app = web.Application(middlewares=[metrics_middleware, sentry_middleware])

    app[SettingsAppKey] = settings
    app[SessionAppKey] = session
    app[MetricsClientAppKey] = metrics_client
    app[ResolverAppKey] = resolver

    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/1.0/identifiers/{did}", handle_resolve_identifier),
        ]
    )

    app.cleanup_ctx.append(app_resources)

    return app
