class JobTrackrError(Exception):
    """Base class for errors shown to the user."""


class ValidationError(JobTrackrError):
    """A payload or credential failed a local check before submission."""


class RemoteOperationError(JobTrackrError):
    """The auth service or the database rejected or failed an operation."""


class AuthorizationGap(JobTrackrError):
    """An owner-scoped operation was attempted without an active session."""
