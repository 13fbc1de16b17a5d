"""
Claim and Profile Page Handlers

- GET /{domain}?handle=&new-handle= - the three-stage claim page
- GET /{domain}/{username} - the public profile page of a claimed username

Both pages are rendered with aiohttp_jinja2. The claim page's state is the
query string and nothing else; see social.persona.vanity.workflow.claim.
"""

import logging
from typing import Any, Dict
from aiohttp import web
import aiohttp_jinja2
import sentry_sdk

from social.persona.vanity.app.config import (
    BlockedTermsAppKey,
    DatabaseSessionMakerAppKey,
    MetricsClientAppKey,
    SessionAppKey,
    Settings,
    SettingsAppKey,
)
from social.persona.vanity.atproto.profile import get_profile
from social.persona.vanity.errors import ClaimNotFoundException
from social.persona.vanity.registry.claims import resolve_claim
from social.persona.vanity.workflow.claim import run_claim_workflow

logger = logging.getLogger(__name__)


def context_vars(settings: Settings) -> Dict[str, Any]:
    return {
        "support_contact": settings.support_contact,
        "donation_url": settings.donation_url,
    }


async def handle_claim_page(request: web.Request):
    settings = request.app[SettingsAppKey]
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    metrics_client = request.app[MetricsClientAppKey]

    domain = request.match_info["domain"].lower()
    handle = request.query.get("handle")
    new_handle = request.query.get("new-handle")

    async with database_session_maker() as database_session:
        view = await run_claim_workflow(
            database_session,
            request.app[SessionAppKey],
            settings,
            domain,
            handle=handle,
            new_handle=new_handle,
            blocked_terms=request.app[BlockedTermsAppKey],
        )

    metrics_client.increment(
        f"{settings.statsd_prefix}.claim.stage",
        1,
        tag_dict={"domain": domain, "stage": view.stage.name},
    )

    context = context_vars(settings)
    context["view"] = view
    return await aiohttp_jinja2.render_template_async(
        "claim.html", request, context=context
    )


async def handle_profile_page(request: web.Request):
    settings = request.app[SettingsAppKey]
    database_session_maker = request.app[DatabaseSessionMakerAppKey]

    domain = request.match_info["domain"].lower()
    username = request.match_info["username"].lower()

    context = context_vars(settings)
    context["domain"] = domain
    context["username"] = username
    context["profile"] = None

    try:
        async with database_session_maker() as database_session:
            did = await resolve_claim(database_session, domain, username)
        context["profile"] = await get_profile(
            request.app[SessionAppKey], settings.appview_url, did
        )
    except ClaimNotFoundException:
        pass
    except Exception as e:
        logger.exception("handle_profile_page: Exception")
        sentry_sdk.capture_exception(e)

    status = 200 if context["profile"] is not None else 404
    response = await aiohttp_jinja2.render_template_async(
        "profile.html", request, context=context
    )
    response.set_status(status)
    return response
