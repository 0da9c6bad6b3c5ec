"""Backend API client package."""

from .client import (
    ApiAuthError,
    ApiClientError,
    ApiForbiddenError,
    ApiNotFoundError,
    ApiRejectedError,
    ProjectApiClient,
)

__all__ = [
    "ApiAuthError",
    "ApiClientError",
    "ApiForbiddenError",
    "ApiNotFoundError",
    "ApiRejectedError",
    "ProjectApiClient",
]
