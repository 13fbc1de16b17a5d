"""
AT Protocol Integration

This package talks to the Bluesky network on behalf of the vanity username
service.

Key Components:
- profile.py: Actor profile lookup through an AppView

The service never verifies identities itself. It trusts the AppView to map an
existing handle to its DID, and the Bluesky client performs the handle
verification against this service's well-known endpoint once a username has
been claimed.
"""
