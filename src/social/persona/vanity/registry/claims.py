"""Vanity username registry.

Maps (domain name, username) pairs to DIDs. Claims are written with a
check-then-insert sequence so that callers get a friendly "username taken"
outcome, and the unique index on (domain_guid, username) closes the race
between the check and the insert: a constraint violation is translated back
into the same outcome the check would have produced.
"""

from enum import IntEnum
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from social.persona.vanity.errors import ClaimException, ClaimNotFoundException
from social.persona.vanity.model.claims import (
    Domain,
    count_claims_stmt,
    new_claim,
    new_domain,
    select_claim_stmt,
    select_domain_stmt,
)

logger = logging.getLogger(__name__)


class ClaimOutcome(IntEnum):
    """Result of a successful claim."""

    created = 1
    unchanged = 2


async def resolve_claim(
    database_session: AsyncSession, domain_name: str, username: str
) -> str:
    """Resolve a username within a domain to its DID.

    Args:
        database_session: SQLAlchemy async session
        domain_name: Domain the username was issued under
        username: Username without the domain suffix

    Returns:
        The claimed DID

    Raises:
        ClaimNotFoundException: No claim exists for the pair
        StorageException: The lookup failed
    """
    try:
        async with database_session.begin():
            claim = (
                await database_session.scalars(select_claim_stmt(domain_name, username))
            ).first()
            did = claim.did if claim is not None else None
    except SQLAlchemyError as e:
        raise ClaimException.storage(str(e)) from e

    if did is None:
        raise ClaimException.claim_not_found(domain_name, username)
    return did


async def claim_username(
    database_session: AsyncSession, domain_name: str, username: str, did: str
) -> ClaimOutcome:
    """Claim a username within a domain for a DID.

    Claiming a username the DID already holds is a no-op. The domain row is
    created if this is the first claim under it.

    Args:
        database_session: SQLAlchemy async session
        domain_name: Domain to issue the username under
        username: Username without the domain suffix
        did: DID of the claimant

    Returns:
        ClaimOutcome.created for a new claim, ClaimOutcome.unchanged for a re-claim

    Raises:
        UsernameConflictException: Another DID holds the username in this domain
        StorageException: The claim could not be persisted
    """
    for attempt in range(2):
        try:
            return await _check_then_insert(database_session, domain_name, username, did)
        except IntegrityError as e:
            logger.info(
                "claim_username: constraint violation for %s.%s, re-reading",
                username,
                domain_name,
            )
            existing_did = await _existing_did(database_session, domain_name, username)
            if existing_did is None:
                # Lost the race to create the domain row.
                if attempt == 0:
                    continue
                raise ClaimException.storage(str(e)) from e
            if existing_did == did:
                return ClaimOutcome.unchanged
            raise ClaimException.username_taken(domain_name, username) from e
        except SQLAlchemyError as e:
            raise ClaimException.storage(str(e)) from e

    raise ClaimException.storage("claim retries exhausted")


async def count_claims(
    database_session: AsyncSession, domain_name: str, username: str
) -> int:
    """Count the stored claims for a (domain name, username) pair."""
    try:
        async with database_session.begin():
            return await database_session.scalar(
                count_claims_stmt(domain_name, username)
            ) or 0
    except SQLAlchemyError as e:
        raise ClaimException.storage(str(e)) from e


async def _check_then_insert(
    database_session: AsyncSession, domain_name: str, username: str, did: str
) -> ClaimOutcome:
    async with database_session.begin():
        existing = (
            await database_session.scalars(select_claim_stmt(domain_name, username))
        ).first()

        if existing is not None:
            if existing.did == did:
                return ClaimOutcome.unchanged
            raise ClaimException.username_taken(domain_name, username)

        domain: Optional[Domain] = (
            await database_session.scalars(select_domain_stmt(domain_name))
        ).first()
        if domain is None:
            domain = new_domain(domain_name)
            database_session.add(domain)
            await database_session.flush()

        database_session.add(new_claim(domain, username, did))
        await database_session.flush()

    logger.info("claim_username: %s.%s claimed by %s", username, domain_name, did)
    return ClaimOutcome.created


async def _existing_did(
    database_session: AsyncSession, domain_name: str, username: str
) -> Optional[str]:
    try:
        return await resolve_claim(database_session, domain_name, username)
    except ClaimNotFoundException:
        return None
