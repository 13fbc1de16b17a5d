"""Username normalization and validation.

Existing handles are what the user types to identify their current account,
new handles are what they want to be called under the domain. Both are
normalized before use so that "Alice" and "alice.example.com" claim the same
username.
"""

import re
from typing import FrozenSet, Optional

USERNAME_PATTERN = r"[a-zA-Z0-9_-]{1,63}"


def normalize_existing_handle(raw_handle: str, default_suffix: str) -> str:
    """Normalize an existing Bluesky handle.

    Strips whitespace and a leading '@', then appends the default suffix to a
    bare name, so "alice" becomes "alice.bsky.social".
    """
    handle = raw_handle.strip().removeprefix("@")
    if "." not in handle:
        handle = f"{handle}.{default_suffix}"
    return handle


def normalize_new_handle(raw_new_handle: str, domain: str) -> str:
    """Normalize a proposed handle under a domain.

    >>> normalize_new_handle(" Alice ", "example.com")
    'alice.example.com'
    """
    new_handle = raw_new_handle.strip().lower()
    if "." not in new_handle:
        new_handle = f"{new_handle}.{domain}"
    return new_handle


def username_from_handle(new_handle: str, domain: str) -> Optional[str]:
    """Extract the username from a normalized handle under a domain.

    Returns None unless the handle is exactly one username label followed by
    the domain.
    """
    match = re.fullmatch(f"({USERNAME_PATTERN})\\.{re.escape(domain)}", new_handle)
    if match is None:
        return None
    return match.group(1)


def has_blocked_term(username: str, blocked_terms: FrozenSet[str]) -> bool:
    return username.lower() in blocked_terms
