"""Username claim workflow.

The claim page is a three-stage form whose whole state lives in the query
string: the existing handle, and optionally the proposed new handle. Every
page load re-runs the workflow from that state:

1. Look up the existing account to learn the claimant's DID.
2. Validate the proposed username and claim it in the registry.
3. Tell the user how to switch their handle in the Bluesky app.

run_claim_workflow is the entry point. It never raises for user or storage
errors; every failure is mapped onto a ClaimStage and a fixed user-facing
message.
"""

from enum import IntEnum
import logging
from typing import FrozenSet, Optional
from aiohttp import ClientSession
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
import sentry_sdk

from social.persona.vanity.app.config import Settings
from social.persona.vanity.app.notify import notify_error
from social.persona.vanity.atproto.profile import ExternalProfile, get_profile
from social.persona.vanity.errors import (
    ClaimException,
    InvalidUsernameException,
    ReservedUsernameException,
    UsernameConflictException,
)
from social.persona.vanity.registry.claims import ClaimOutcome, claim_username
from social.persona.vanity.workflow.usernames import (
    has_blocked_term,
    normalize_existing_handle,
    normalize_new_handle,
    username_from_handle,
)

logger = logging.getLogger(__name__)


class ClaimStage(IntEnum):
    """Where a claim session ended up after this request."""

    start = 1
    profile_looked_up = 2
    account_not_found = 3
    username_rejected = 4
    username_reserved = 5
    conflict = 6
    claimed = 7
    error = 8
    notification_failed = 9


ACCOUNT_NOT_FOUND_MESSAGE = "Username not found - please try again."
INVALID_USERNAME_MESSAGE = "Invalid username, please choose a different username."
RESERVED_USERNAME_MESSAGE = "Reserved username, please choose a different username."
USERNAME_TAKEN_MESSAGE = "Username already taken, please choose a different username."
UNEXPECTED_ERROR_MESSAGE = (
    "Unexpected error, the database may be out of order. Please try again later."
)
NOTIFICATION_FAILED_MESSAGE = (
    "Unexpected error, and the error report could not be delivered. "
    "Please try again later."
)

STAGE_MESSAGES = {
    ClaimStage.account_not_found: ACCOUNT_NOT_FOUND_MESSAGE,
    ClaimStage.username_rejected: INVALID_USERNAME_MESSAGE,
    ClaimStage.username_reserved: RESERVED_USERNAME_MESSAGE,
    ClaimStage.conflict: USERNAME_TAKEN_MESSAGE,
    ClaimStage.error: UNEXPECTED_ERROR_MESSAGE,
    ClaimStage.notification_failed: NOTIFICATION_FAILED_MESSAGE,
}


class ClaimView(BaseModel):
    """Everything the claim page needs to render one request."""

    domain: str
    handle: Optional[str] = None
    new_handle: Optional[str] = None
    profile: Optional[ExternalProfile] = None
    stage: ClaimStage = ClaimStage.start

    @property
    def message(self) -> Optional[str]:
        return STAGE_MESSAGES.get(self.stage)

    @property
    def claimed(self) -> bool:
        return self.stage == ClaimStage.claimed


async def lookup_existing_account(
    http_session: ClientSession, settings: Settings, raw_handle: str
) -> ExternalProfile:
    """Look up the account a user currently has on Bluesky.

    Raises:
        AccountNotFoundException: The AppView did not return a profile
    """
    handle = normalize_existing_handle(raw_handle, settings.default_handle_suffix)
    logger.info("fetching profile %s", handle)
    try:
        profile = await get_profile(http_session, settings.appview_url, handle)
    except Exception as e:
        logger.warning("lookup_existing_account: %s: %s", handle, e)
        raise ClaimException.account_not_found(handle) from e
    if profile is None:
        raise ClaimException.account_not_found(handle)
    return profile


async def claim_new_username(
    database_session: AsyncSession,
    settings: Settings,
    blocked_terms: FrozenSet[str],
    domain: str,
    new_handle: str,
    profile: ExternalProfile,
) -> ClaimOutcome:
    """Validate a normalized handle and claim its username for the profile's DID.

    Raises:
        InvalidUsernameException: Malformed or blocked username
        ReservedUsernameException: Username reserved by the domain owner
        UsernameConflictException: Username held by another DID
        StorageException: The claim could not be persisted
    """
    username = username_from_handle(new_handle, domain)
    if username is None:
        raise ClaimException.invalid_username(new_handle)
    if has_blocked_term(username, blocked_terms):
        raise ClaimException.invalid_username(new_handle)
    if username in settings.reserved_usernames:
        raise ClaimException.reserved_username(new_handle)

    return await claim_username(database_session, domain, username, profile.did)


async def propose_new_username(
    database_session: AsyncSession,
    http_session: ClientSession,
    settings: Settings,
    blocked_terms: FrozenSet[str],
    domain: str,
    new_handle: str,
    profile: ExternalProfile,
) -> ClaimStage:
    """Claim a normalized handle and translate the result into a stage.

    Unexpected failures are reported to Sentry and the notification webhook.
    """
    try:
        await claim_new_username(
            database_session, settings, blocked_terms, domain, new_handle, profile
        )
        return ClaimStage.claimed
    except InvalidUsernameException:
        return ClaimStage.username_rejected
    except ReservedUsernameException:
        return ClaimStage.username_reserved
    except UsernameConflictException:
        return ClaimStage.conflict
    except Exception as e:
        logger.exception("New username registration error")
        sentry_sdk.capture_exception(e)
        notified = await notify_error(
            http_session,
            settings.error_webhook_url,
            str(e) or type(e).__name__,
            settings.error_webhook_mention,
        )
        if not notified:
            return ClaimStage.notification_failed
        return ClaimStage.error


async def run_claim_workflow(
    database_session: AsyncSession,
    http_session: ClientSession,
    settings: Settings,
    domain: str,
    handle: Optional[str] = None,
    new_handle: Optional[str] = None,
    blocked_terms: FrozenSet[str] = frozenset(),
) -> ClaimView:
    """Run the claim workflow for one request.

    Args:
        database_session: SQLAlchemy async session
        http_session: HTTP client session
        settings: Application settings
        domain: Domain the username is claimed under
        handle: Existing handle from the query string, if any
        new_handle: Proposed handle from the query string, if any
        blocked_terms: Lowercased usernames that may never be claimed

    Returns:
        ClaimView describing the stage reached
    """
    view = ClaimView(domain=domain)
    if not handle:
        return view

    view.handle = normalize_existing_handle(handle, settings.default_handle_suffix)
    try:
        view.profile = await lookup_existing_account(http_session, settings, handle)
    except ClaimException:
        view.stage = ClaimStage.account_not_found
        return view

    view.stage = ClaimStage.profile_looked_up
    if not new_handle:
        return view

    view.new_handle = normalize_new_handle(new_handle, domain)
    view.stage = await propose_new_username(
        database_session,
        http_session,
        settings,
        blocked_terms,
        domain,
        view.new_handle,
        view.profile,
    )
    return view
