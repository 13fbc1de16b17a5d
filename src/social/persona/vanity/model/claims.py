"""Vanity username claim data models.

Provides SQLAlchemy models for the domains usernames are issued under and the
claims binding a username in one of those domains to an AT Protocol DID.
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import ForeignKey, Index, String, func, select
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ulid import ULID

from social.persona.vanity.model.base import Base, didstr, dnslabel, guidpk, hostname


class Domain(Base):
    """Hostname under which vanity usernames are issued.

    Domains are created on the first successful claim under their name and are
    never deleted.
    """

    __tablename__ = "domains"

    guid: Mapped[guidpk]
    name: Mapped[hostname]
    created_at: Mapped[datetime]

    claims: Mapped[List["Claim"]] = relationship(back_populates="domain")

    __table_args__ = (Index("idx_domains_name", "name", unique=True),)


class Claim(Base):
    """Binding of a username within a domain to a DID.

    The username is stored without the domain suffix, so the claim for
    ``alice.example.com`` has username ``alice`` and belongs to the
    ``example.com`` domain.
    """

    __tablename__ = "claims"

    guid: Mapped[guidpk]
    username: Mapped[dnslabel]
    did: Mapped[didstr]
    domain_guid: Mapped[str] = mapped_column(String(512), ForeignKey("domains.guid"))
    created_at: Mapped[datetime]

    domain: Mapped[Domain] = relationship(back_populates="claims")

    __table_args__ = (
        Index("idx_claims_domain_username", "domain_guid", "username", unique=True),
        Index("idx_claims_did", "did"),
    )


def new_domain(name: str) -> Domain:
    return Domain(guid=str(ULID()), name=name, created_at=datetime.now(timezone.utc))


def new_claim(domain: Domain, username: str, did: str) -> Claim:
    return Claim(
        guid=str(ULID()),
        username=username,
        did=did,
        domain_guid=domain.guid,
        created_at=datetime.now(timezone.utc),
    )


def select_claim_stmt(domain_name: str, username: str):
    """Select the claim for a (domain name, username) pair."""
    return (
        select(Claim)
        .join(Domain, Claim.domain_guid == Domain.guid)
        .where(Domain.name == domain_name, Claim.username == username)
    )


def count_claims_stmt(domain_name: str, username: str):
    return (
        select(func.count())
        .select_from(Claim)
        .join(Domain, Claim.domain_guid == Domain.guid)
        .where(Domain.name == domain_name, Claim.username == username)
    )


def select_domain_stmt(name: str):
    return select(Domain).where(Domain.name == name)
