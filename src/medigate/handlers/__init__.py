"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .cache_handler import CacheHandler
from .search_handler import SearchHandler
from .speech_handler import SpeechHandler

__all__ = [
    "CacheHandler",
    "SearchHandler",
    "SpeechHandler",
]
