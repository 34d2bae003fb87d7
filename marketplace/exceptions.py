"""Error taxonomy for the marketplace session service.

Collaborator failures surface as ``ApiError``. The controller turns read
failures into a load error on the session and write failures into an alert;
only auth failures propagate to the HTTP layer.
"""


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""


# --- Collaborator errors ---

class ApiError(MarketplaceError):
    """The data API rejected a call or could not be reached."""

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class NotFoundError(ApiError):
    pass


class AuthorizationError(ApiError):
    pass


# --- Session errors ---

class LoadFailure(MarketplaceError):
    """A read call failed while loading session data."""


class MutationFailure(MarketplaceError):
    """A write call failed; the view is left as it was."""


class AuthFailure(MarketplaceError):
    """Login or registration was refused."""


class InvalidCredentials(AuthFailure):
    pass


class DuplicateUser(AuthFailure):
    pass


class InvalidRegistration(AuthFailure):
    pass
