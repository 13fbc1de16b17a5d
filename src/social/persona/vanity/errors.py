"""
Claim and resolution exceptions.

Every failure the registry and the claim workflow report is a subclass of
ClaimException. Messages carry an error code prefix so that log lines and
Sentry events can be grouped, but they are never shown to end users; the claim
workflow maps each exception type to one of a closed set of user-facing
messages.
"""


class ClaimException(Exception):
    """
    Base exception for registry and claim workflow failures.

    This exception class provides static methods for creating specific
    failure instances with appropriate error messages.
    """

    @staticmethod
    def account_not_found(handle: str) -> "AccountNotFoundException":
        """The existing account could not be looked up on the network."""
        return AccountNotFoundException(
            f"error-claim-1000 Account not found: {handle}"
        )

    @staticmethod
    def invalid_username(username: str) -> "InvalidUsernameException":
        """The proposed username is malformed or blocked."""
        return InvalidUsernameException(
            f"error-claim-1001 Invalid username: {username}"
        )

    @staticmethod
    def reserved_username(username: str) -> "ReservedUsernameException":
        """The proposed username is reserved by the domain owner."""
        return ReservedUsernameException(
            f"error-claim-1002 Reserved username: {username}"
        )

    @staticmethod
    def username_taken(domain_name: str, username: str) -> "UsernameConflictException":
        """The username is already claimed by another DID in this domain."""
        return UsernameConflictException(
            f"error-registry-1000 username taken: {username}.{domain_name}"
        )

    @staticmethod
    def claim_not_found(domain_name: str, username: str) -> "ClaimNotFoundException":
        """No claim exists for the domain and username."""
        return ClaimNotFoundException(
            f"error-registry-1001 Claim not found: {username}.{domain_name}"
        )

    @staticmethod
    def storage(msg: str = "") -> "StorageException":
        """An unexpected persistence failure."""
        return StorageException(f"error-registry-1999 Storage error: {msg}")


class AccountNotFoundException(ClaimException):
    pass


class InvalidUsernameException(ClaimException):
    pass


class ReservedUsernameException(ClaimException):
    pass


class UsernameConflictException(ClaimException):
    pass


class ClaimNotFoundException(ClaimException):
    pass


class StorageException(ClaimException):
    pass
