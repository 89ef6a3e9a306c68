"""
Earth Care Network Python client.

Example:
    >>> from earthcare_client import EarthCareClient
    >>> client = EarthCareClient(base_url="http://localhost:8000")
    >>> client.auth.login("admin@earthcare.network", "admin12345")
"""

from .cache import QueryCache
from .client import EarthCareClient
from .favorites import Favorites
from .errors import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    PermissionDenied,
    ServerError,
    TransportError,
    ValidationError,
)
from .onboarding import OnboardingRepository
from .polling import JobPoller
from .storage import JsonFileStore, KeyValueStore, MemoryStore

__version__ = "0.1.0"
__all__ = [
    "EarthCareClient",
    "QueryCache",
    "Favorites",
    "OnboardingRepository",
    "JobPoller",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    # Errors
    "ApiError",
    "TransportError",
    "ValidationError",
    "AuthenticationError",
    "PermissionDenied",
    "NotFoundError",
    "ServerError",
]
