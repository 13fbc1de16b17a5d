"""
Username Registry

This package owns the mapping from (domain name, username) to DID.

Key Components:
- claims.py: Claim and resolution operations over the claims table

Operations:
1. Resolution
   - Exact match on the (domain name, username) pair
   - Used by the well-known atproto-did endpoints and the profile page

2. Claim
   - Re-claiming a username already held by the same DID is a no-op
   - A username held by another DID in the same domain is a conflict
   - Otherwise the domain is created if needed and the claim inserted

The same username text may be claimed independently under different domains.
"""
