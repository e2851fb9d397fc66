class ActivityCardError(Exception):
    """Base class for errors surfaced to the card routes."""


class MissingParameterError(ActivityCardError):
    """Raised when a required request parameter is absent."""


class UserNotFoundError(ActivityCardError):
    """Raised when GitHub confirms the requested account does not exist."""


class UpstreamUnavailableError(ActivityCardError):
    """Raised when GitHub requests fail for any reason other than a missing user."""
