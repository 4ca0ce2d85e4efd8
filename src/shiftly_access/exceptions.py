"""Exception types shared across the access-control layer.

Lifecycle errors subclass ``ValueError`` so callers that only care about
"bad request" style failures can keep catching ``ValueError``.
"""


class StoreUnavailable(RuntimeError):
    """The permission store could not be reached while resolving grants.

    This means "cannot determine", never "denied": callers must surface it as a
    service failure rather than a permission refusal.
    """

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        super().__init__(message or f"Permission store unavailable during {operation}")


class NoRoleAssigned(ValueError):
    """A principal without a role reached permission resolution."""

    def __init__(self, user_id: str | None = None):
        self.user_id = user_id
        super().__init__(f"No role assigned to user {user_id}" if user_id else "No role assigned")


class NotFoundError(ValueError):
    pass


class DuplicateError(ValueError):
    pass


class SystemRoleError(ValueError):
    pass


class InvalidInvitationError(ValueError):
    pass
