"""Errors raised by the client data layer."""


class DataServiceError(Exception):
    """Generic failure talking to a store. The UI decides whether to retry.

    ``body`` holds the decoded error response when there was one.
    """

    def __init__(self, message: str = "", body: dict = None):
        super().__init__(message)
        self.body = body or {}


class ValidationError(DataServiceError):
    pass


class NotAuthenticated(DataServiceError):
    pass


class Forbidden(DataServiceError):
    pass


class NotFound(DataServiceError):
    pass


class LoginError(DataServiceError):
    """A login attempt ended in a non-success state.

    ``reason`` is the server's machine-readable state, e.g.
    ``needs_invite_code`` tells the UI to ask for an invite code.
    """

    def __init__(self, message: str, reason: str = ""):
        super().__init__(message)
        self.reason = reason
