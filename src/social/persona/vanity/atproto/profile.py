"""Bluesky profile lookup.

Fetches actor profiles from an AppView using the public
app.bsky.actor.getProfile XRPC method. The claim workflow uses the profile to
learn which DID is claiming a username; the profile page uses it to show who
holds one.
"""

import logging
from typing import Optional
from aiohttp import ClientSession
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class ExternalProfile(BaseModel):
    """Bluesky actor profile.

    Only the fields this service displays are kept.
    """

    model_config = ConfigDict(populate_by_name=True)

    did: str
    handle: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    avatar: Optional[str] = None


async def get_profile(
    session: ClientSession, appview_url: str, actor: str
) -> Optional[ExternalProfile]:
    """Look up a Bluesky actor profile by handle or DID.

    Args:
        session: HTTP client session
        appview_url: Base URL of the AppView, e.g. https://public.api.bsky.app
        actor: Handle or DID of the actor

    Returns:
        ExternalProfile if found, None if the AppView reports failure
    """
    url = f"{appview_url.rstrip('/')}/xrpc/app.bsky.actor.getProfile"
    async with session.get(url, params={"actor": actor}) as resp:
        if resp.status != 200:
            logger.info("get_profile: %s returned status %s", actor, resp.status)
            return None
        body = await resp.json()
        if body is None:
            return None
        try:
            return ExternalProfile.model_validate(body)
        except ValidationError:
            logger.warning("get_profile: malformed profile for %s", actor)
            return None
