"""
AT Protocol Well-Known Handlers

Bluesky verifies a domain handle by fetching
https://{handle}/.well-known/atproto-did and comparing the body with the DID
the user asked to switch to. These handlers answer that request from the
registry.

Two forms are served:
- GET /.well-known/atproto-did - the handle is taken from the Host header, so
  alice.example.com resolves username "alice" in domain "example.com". This is
  the form the Bluesky client fetches when the domain's DNS points here.
- GET /{domain}/{username}/.well-known/atproto-did - explicit path form, for
  deployments where a proxy rewrites the host into the path.
"""

import logging
from typing import Optional, Tuple
from aiohttp import web
import sentry_sdk

from social.persona.vanity.app.config import (
    DatabaseSessionMakerAppKey,
    MetricsClientAppKey,
    SettingsAppKey,
)
from social.persona.vanity.errors import ClaimNotFoundException
from social.persona.vanity.registry.claims import resolve_claim

logger = logging.getLogger(__name__)


def split_host(host: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split a request host into (domain, username).

    The port, if any, is dropped. Hosts with fewer than three labels cannot be
    a username under a domain and return None.
    """
    if not host:
        return None
    hostname = host.rsplit(":", 1)[0] if not host.endswith("]") else host
    hostname = hostname.strip().rstrip(".").lower()
    username, _, domain = hostname.partition(".")
    if not username or "." not in domain:
        return None
    return domain, username


async def _did_response(
    request: web.Request, domain: str, username: str
) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    metrics_client = request.app[MetricsClientAppKey]
    metric = f"{request.app[SettingsAppKey].statsd_prefix}.resolve.count"

    try:
        async with database_session_maker() as database_session:
            did = await resolve_claim(database_session, domain, username)
    except ClaimNotFoundException:
        metrics_client.increment(
            metric, 1, tag_dict={"domain": domain, "found": False}
        )
        raise web.HTTPNotFound(text="Not Found")
    except Exception as e:
        logger.exception("handle_well_known_did: Exception")
        sentry_sdk.capture_exception(e)
        raise web.HTTPInternalServerError(text="Internal Server Error")

    metrics_client.increment(
        metric, 1, tag_dict={"domain": domain, "found": True}
    )
    return web.Response(text=did, content_type="text/plain")


async def handle_well_known_did(request: web.Request) -> web.Response:
    domain = request.match_info["domain"].lower()
    username = request.match_info["username"].lower()
    return await _did_response(request, domain, username)


async def handle_well_known_host(request: web.Request) -> web.Response:
    split = split_host(request.host)
    if split is None:
        raise web.HTTPNotFound(text="Not Found")
    domain, username = split
    return await _did_response(request, domain, username)
