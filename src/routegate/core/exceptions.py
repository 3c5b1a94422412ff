"""Domain-specific exceptions.

All exceptions in the routegate system inherit from RoutegateError,
making it easy to catch all system errors while still being able
to handle specific error types.

Navigation authorization outcomes are never raised: the route guard
turns a missing principal, an inactive profile or a denied route into
a redirect decision. The classes below cover admin actions and
infrastructure failures only.
"""

from __future__ import annotations


class RoutegateError(Exception):
    """Base exception for all routegate errors."""

    pass


class NotFoundError(RoutegateError):
    """A profile, team or invitation does not exist in the caller's organization."""

    pass


class LifecycleConflictError(RoutegateError):
    """An admin action was rejected because of the current state.

    Raised synchronously at the point of the action, before anything is
    written:
    - a pending invitation already exists for the email
    - the team still has members
    - the role/team pairing is invalid (team on a non-internal role,
      internal approval without a team)
    - the requested transition is not allowed from the current status

    State is left unchanged.
    """

    pass


class InvalidInputError(RoutegateError):
    """An admin supplied a value the action cannot use, such as a blank team name."""

    pass


class PermissionDeniedError(RoutegateError):
    """The acting profile lacks the role required for an admin action."""

    pass


class StoreError(RoutegateError):
    """The persistent store rejected or failed a request.

    Lifecycle mutations surface this to the admin unchanged; there is no
    automatic retry. Audit writes log and swallow it.
    """

    pass


class IdentityProviderError(RoutegateError):
    """The identity provider could not be reached or answered with an error.

    Attributes:
        status_code: HTTP status returned by the provider, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize IdentityProviderError.

        Args:
            message: Error description.
            status_code: HTTP status returned by the provider, if any.
        """
        super().__init__(message)
        self.status_code = status_code
