"""
Claim Workflow

This package implements the user-facing sequence for claiming a vanity
username.

Key Components:
- usernames.py: Handle normalization, username syntax and the denylist
- claim.py: The three-stage workflow and its user-facing outcomes

The workflow holds no state between requests. The claim page passes the
existing handle and proposed handle from the query string on every load and
the workflow recomputes the stage from scratch, so resubmitting a claim the
user already holds is a harmless no-op.
"""
