"""Error taxonomy for detection and merge operations."""


class IdentityDedupError(Exception):
    """Base class for all identity dedup failures."""


class NotFound(IdentityDedupError):
    """A referenced user id does not exist."""


class InvalidArgument(IdentityDedupError):
    """A request is malformed, e.g. merging a user into itself."""


class TransactionFailure(IdentityDedupError):
    """A merge transaction failed and was rolled back."""


class AuditUnavailable(IdentityDedupError):
    """The optional audit store is absent or unreachable."""
