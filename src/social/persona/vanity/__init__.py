"""
Persona Vanity - community usernames for Bluesky

This package lets a domain owner hand out usernames under their own domain on
the AT Protocol network. A user proves which account they hold by entering
their current handle, picks a username under the domain, and the service
records the claim and answers the AT Protocol well-known DID request for it.
The Bluesky client does the actual handle verification by fetching that
well-known document.

Key Components:
- app: Web application layer with request handlers and server configuration
- atproto: Bluesky profile lookup
- model: Database models for domains and claims
- registry: Claim and resolution operations over the database
- workflow: The user-facing claim sequence and username validation

Claim Flow:
1. The user enters their existing handle; the profile is looked up to learn
   their DID.
2. The user proposes a username; it is normalized, checked against the
   username syntax, the denylist and the reserved list, then claimed.
3. The user switches their handle in the Bluesky app, which fetches
   https://{username}.{domain}/.well-known/atproto-did from this service.
"""
