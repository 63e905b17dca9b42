"""Exceptions raised by the Auth0 Management API client."""


class ManagementError(Exception):
    """Base exception for all Management API operations."""


class AuthenticationError(ManagementError):
    """The client-credentials token exchange was rejected.

    Attributes:
        status: HTTP status code returned by the token endpoint
        body: Raw response body text
    """

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Failed to get access token: {status} {body}")


class ApiError(ManagementError):
    """A Management API call returned a non-success status.

    Attributes:
        status: HTTP status code
        body: Raw response body text
        method: HTTP verb of the failed call
        path: API path of the failed call
    """

    def __init__(self, status: int, body: str, method: str = "", path: str = ""):
        self.status = status
        self.body = body
        self.method = method
        self.path = path
        super().__init__(f"Auth0 API error: {status} {body}")

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_forbidden(self) -> bool:
        return self.status == 403
