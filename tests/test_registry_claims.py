"""
Unit tests for the registry in social.persona.vanity.registry.claims

Tests cover resolution, claim outcomes, idempotent re-claims and the
translation of unique-constraint violations raised by concurrent claims.
"""

from unittest.mock import patch

import pytest
from sqlalchemy import false, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from social.persona.vanity.errors import (
    ClaimNotFoundException,
    StorageException,
    UsernameConflictException,
)
from social.persona.vanity.model.claims import Domain, new_claim, new_domain
from social.persona.vanity.registry import claims as registry
from social.persona.vanity.registry.claims import (
    ClaimOutcome,
    claim_username,
    count_claims,
    resolve_claim,
)


class TestResolveClaim:
    async def test_resolve_after_claim(self, session: AsyncSession):
        """A successful claim is resolvable to exactly the claimed DID."""
        outcome = await claim_username(session, "example.com", "alice", "did:plc:123")

        assert outcome == ClaimOutcome.created
        assert await resolve_claim(session, "example.com", "alice") == "did:plc:123"

    async def test_resolve_missing(self, session: AsyncSession):
        with pytest.raises(ClaimNotFoundException):
            await resolve_claim(session, "example.com", "bob")

    async def test_resolve_is_exact(self, session: AsyncSession):
        """No normalization happens at the registry."""
        await claim_username(session, "example.com", "alice", "did:plc:123")

        with pytest.raises(ClaimNotFoundException):
            await resolve_claim(session, "example.com", "Alice")
        with pytest.raises(ClaimNotFoundException):
            await resolve_claim(session, "Example.com", "alice")

    async def test_resolve_storage_error(self, session: AsyncSession):
        with patch.object(
            session, "scalars", side_effect=OperationalError("SELECT", {}, Exception("down"))
        ):
            with pytest.raises(StorageException):
                await resolve_claim(session, "example.com", "alice")


class TestClaimUsername:
    async def test_conflict_keeps_stored_did(self, session: AsyncSession):
        """A second DID cannot take a claimed username."""
        await claim_username(session, "example.com", "alice", "did:plc:123")

        with pytest.raises(UsernameConflictException):
            await claim_username(session, "example.com", "alice", "did:plc:456")

        assert await resolve_claim(session, "example.com", "alice") == "did:plc:123"

    async def test_reclaim_is_idempotent(self, session: AsyncSession):
        """Claiming twice with the same DID succeeds and keeps one row."""
        first = await claim_username(session, "example.com", "alice", "did:plc:123")
        second = await claim_username(session, "example.com", "alice", "did:plc:123")

        assert first == ClaimOutcome.created
        assert second == ClaimOutcome.unchanged
        assert await count_claims(session, "example.com", "alice") == 1

    async def test_domain_created_once(self, session: AsyncSession):
        """The domain row is created on first claim and reused afterwards."""
        await claim_username(session, "example.com", "alice", "did:plc:123")
        await claim_username(session, "example.com", "bob", "did:plc:456")

        result = await session.execute(select(Domain).where(Domain.name == "example.com"))
        assert len(result.scalars().all()) == 1

    async def test_same_username_other_domain(self, session: AsyncSession):
        """A username claimed under one domain is free under another."""
        await claim_username(session, "example.com", "alice", "did:plc:123")
        outcome = await claim_username(session, "example.org", "alice", "did:plc:456")

        assert outcome == ClaimOutcome.created
        assert await resolve_claim(session, "example.com", "alice") == "did:plc:123"
        assert await resolve_claim(session, "example.org", "alice") == "did:plc:456"

    async def test_did_may_claim_several_usernames(self, session: AsyncSession):
        await claim_username(session, "example.com", "alice", "did:plc:123")
        outcome = await claim_username(session, "example.com", "alice2", "did:plc:123")

        assert outcome == ClaimOutcome.created

    async def test_storage_error(self, session: AsyncSession):
        with patch.object(
            session, "scalars", side_effect=OperationalError("SELECT", {}, Exception("down"))
        ):
            with pytest.raises(StorageException) as exc_info:
                await claim_username(session, "example.com", "alice", "did:plc:123")

        assert isinstance(exc_info.value.__cause__, OperationalError)


def racing_select():
    """Hide existing claims from the first lookup, as a concurrent insert would."""
    real_select = registry.select_claim_stmt
    calls = []

    def select_claim_stmt(domain_name, username):
        calls.append((domain_name, username))
        stmt = real_select(domain_name, username)
        if len(calls) == 1:
            return stmt.where(false())
        return stmt

    return select_claim_stmt


class TestConcurrentClaims:
    async def seed(self, session: AsyncSession, did: str) -> None:
        domain = new_domain("example.com")
        session.add(domain)
        session.add(new_claim(domain, "alice", did))
        await session.commit()

    async def test_lost_race_other_did_is_conflict(self, session: AsyncSession):
        await self.seed(session, "did:plc:123")

        with patch(
            "social.persona.vanity.registry.claims.select_claim_stmt",
            side_effect=racing_select(),
        ):
            with pytest.raises(UsernameConflictException):
                await claim_username(session, "example.com", "alice", "did:plc:456")

        assert await resolve_claim(session, "example.com", "alice") == "did:plc:123"
        assert await count_claims(session, "example.com", "alice") == 1

    async def test_lost_race_same_did_is_unchanged(self, session: AsyncSession):
        await self.seed(session, "did:plc:123")

        with patch(
            "social.persona.vanity.registry.claims.select_claim_stmt",
            side_effect=racing_select(),
        ):
            outcome = await claim_username(
                session, "example.com", "alice", "did:plc:123"
            )

        assert outcome == ClaimOutcome.unchanged
        assert await count_claims(session, "example.com", "alice") == 1

    async def test_lost_domain_race_is_retried(self, session: AsyncSession):
        session.add(new_domain("example.com"))
        await session.commit()

        real_select_domain = registry.select_domain_stmt
        calls = []

        def select_domain_stmt(name):
            calls.append(name)
            stmt = real_select_domain(name)
            if len(calls) == 1:
                return stmt.where(false())
            return stmt

        with patch(
            "social.persona.vanity.registry.claims.select_domain_stmt",
            side_effect=select_domain_stmt,
        ):
            outcome = await claim_username(
                session, "example.com", "alice", "did:plc:123"
            )

        assert outcome == ClaimOutcome.created
        assert len(calls) == 2
        assert await resolve_claim(session, "example.com", "alice") == "did:plc:123"
