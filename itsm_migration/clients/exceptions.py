"""Common exceptions for the target client."""


class ClientError(Exception):
    """Base exception for all client errors."""


class ClientConnectionError(ClientError):
    """Error when connection to the target system fails."""


class AuthenticationError(ClientError):
    """Error when authentication or authorization fails."""


class ResourceNotFoundError(ClientError):
    """Error when a class, relationship or object is not found."""


class ApiError(ClientError):
    """General API error, including rejected object creation."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ClientError):
    """Error when rate limit is exceeded."""

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        """Initialize a rate limit error with optional retry-after seconds."""
        super().__init__(message)
        self.retry_after = retry_after
