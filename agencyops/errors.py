"""Exceptions raised by agencyops services.

The API layer translates these into HTTP responses; the reminder sweep
catches TransientDependencyError per task and keeps going.
"""


class AgencyOpsError(Exception):
    """Base class for agencyops errors."""


class AuthenticationError(AgencyOpsError):
    """Missing or invalid credentials."""


class AuthorizationError(AgencyOpsError):
    """Authenticated caller may not act on the requested user's data."""


class InvalidInputError(AgencyOpsError):
    """Malformed client input (e.g. an unparsable date)."""


class NotFoundError(AgencyOpsError):
    """Entity lookup by id found nothing."""


class DuplicatePlanEntryError(AgencyOpsError):
    """The task is already planned for that user and date."""


class TransientDependencyError(AgencyOpsError):
    """A single call to an external collaborator failed or timed out."""
