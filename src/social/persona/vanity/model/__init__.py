"""
Database Models

This package defines the database models for the vanity username service using
SQLAlchemy ORM.

Key Models:
- base.py: Base SQLAlchemy model with common type definitions
- claims.py: Domains and the username claims issued under them

The data models follow these relationships:
- Domain: A hostname usernames are issued under, created on first claim
- Claim: A username within a Domain bound to an AT Protocol DID

Usernames are unique within a domain, enforced by a unique index on
(domain_guid, username). The same username text may be claimed independently
under different domains, and a DID may hold more than one username.
"""
