"""Client package for talking to the target ticketing system."""

from itsm_migration.clients.exceptions import (
    ApiError,
    AuthenticationError,
    ClientConnectionError,
    ClientError,
    RateLimitError,
    ResourceNotFoundError,
)

__all__ = [
    "ApiError",
    "AuthenticationError",
    "ClientConnectionError",
    "ClientError",
    "RateLimitError",
    "ResourceNotFoundError",
]
