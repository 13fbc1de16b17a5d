"""
Unit tests for the Domain and Claim models in social.persona.vanity.model.claims

Tests cover creation, the per-domain username uniqueness constraint and the
lookup statements used by the registry.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from social.persona.vanity.model.claims import (
    Claim,
    Domain,
    count_claims_stmt,
    new_claim,
    new_domain,
    select_claim_stmt,
    select_domain_stmt,
)


async def create_domain(session: AsyncSession, name: str) -> Domain:
    domain = new_domain(name)
    session.add(domain)
    await session.commit()
    return domain


class TestDomainModel:
    async def test_create_domain(self, session: AsyncSession):
        """Test creating a new Domain record."""
        domain = await create_domain(session, "example.com")

        result = await session.execute(select_domain_stmt("example.com"))
        retrieved = result.scalar_one()

        assert retrieved.guid == domain.guid
        assert retrieved.name == "example.com"
        assert retrieved.created_at is not None

    async def test_domain_name_unique(self, session: AsyncSession):
        """Test that the domain name enforces uniqueness."""
        await create_domain(session, "example.com")

        session.add(new_domain("example.com"))
        with pytest.raises(IntegrityError):
            await session.commit()
        await session.rollback()

    async def test_new_domain_generates_distinct_guids(self):
        assert new_domain("a.example").guid != new_domain("b.example").guid


class TestClaimModel:
    async def test_create_claim(self, session: AsyncSession):
        """Test creating a Claim under a Domain."""
        domain = await create_domain(session, "example.com")
        claim = new_claim(domain, "alice", "did:plc:123")
        session.add(claim)
        await session.commit()

        result = await session.execute(select_claim_stmt("example.com", "alice"))
        retrieved = result.scalar_one()

        assert retrieved.did == "did:plc:123"
        assert retrieved.domain_guid == domain.guid

    async def test_username_unique_within_domain(self, session: AsyncSession):
        """Test that a username can only be stored once per domain."""
        domain = await create_domain(session, "example.com")
        session.add(new_claim(domain, "alice", "did:plc:123"))
        await session.commit()

        session.add(new_claim(domain, "alice", "did:plc:456"))
        with pytest.raises(IntegrityError):
            await session.commit()
        await session.rollback()

    async def test_same_username_in_different_domains(self, session: AsyncSession):
        """Test that the same username text may exist under two domains."""
        first = await create_domain(session, "example.com")
        second = await create_domain(session, "example.org")
        session.add(new_claim(first, "alice", "did:plc:123"))
        session.add(new_claim(second, "alice", "did:plc:456"))
        await session.commit()

        result = await session.execute(select(Claim).where(Claim.username == "alice"))
        assert len(result.scalars().all()) == 2

    async def test_did_may_hold_several_usernames(self, session: AsyncSession):
        """Test that one DID can claim several usernames in one domain."""
        domain = await create_domain(session, "example.com")
        session.add(new_claim(domain, "alice", "did:plc:123"))
        session.add(new_claim(domain, "alice2", "did:plc:123"))
        await session.commit()

        result = await session.execute(select(Claim).where(Claim.did == "did:plc:123"))
        assert len(result.scalars().all()) == 2


class TestLookupStatements:
    async def test_select_claim_scoped_by_domain(self, session: AsyncSession):
        first = await create_domain(session, "example.com")
        second = await create_domain(session, "example.org")
        session.add(new_claim(first, "alice", "did:plc:123"))
        session.add(new_claim(second, "alice", "did:plc:456"))
        await session.commit()

        result = await session.execute(select_claim_stmt("example.org", "alice"))
        assert result.scalar_one().did == "did:plc:456"

    async def test_select_claim_missing(self, session: AsyncSession):
        result = await session.execute(select_claim_stmt("example.com", "bob"))
        assert result.scalar_one_or_none() is None

    async def test_count_claims(self, session: AsyncSession):
        domain = await create_domain(session, "example.com")
        session.add(new_claim(domain, "alice", "did:plc:123"))
        await session.commit()

        assert await session.scalar(count_claims_stmt("example.com", "alice")) == 1
        assert await session.scalar(count_claims_stmt("example.com", "bob")) == 0
