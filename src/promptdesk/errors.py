"""
Error taxonomy shared by the API layer and the services.

Each error carries the HTTP status it maps to; the message is what the client
sees, so it must never contain internal failure details.
"""


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(ApiError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized - Authentication required"):
        super().__init__(message)


class Unauthorized(ApiError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized - Invalid tenant"):
        super().__init__(message)


class InvalidParameter(ApiError):
    status_code = 400


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class Internal(ApiError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class IdentityLookupError(Internal):
    """The session store failed while resolving a request's session."""

    def __init__(self, message: str = "Failed to resolve session"):
        super().__init__(message)
