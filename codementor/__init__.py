"""CodeMentor client: offline-friendly cached access to the CodeMentor learning API."""

from codementor.client import CodeMentorClient, configure_logging
from codementor.services.cache_service import CacheService, MAX_TTL
from codementor.exceptions import (
    CodeMentorError,
    NetworkError,
    NotFoundError,
    AuthenticationError,
    OfflineCacheMissError,
)

__all__ = [
    "CodeMentorClient",
    "configure_logging",
    "CacheService",
    "MAX_TTL",
    "CodeMentorError",
    "NetworkError",
    "NotFoundError",
    "AuthenticationError",
    "OfflineCacheMissError",
]
