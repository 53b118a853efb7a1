"""Site Clients.

This package fetches used car part listings from independent marketplaces
and normalizes them into one record shape.

Main components:
- SiteClient: Abstract base class for all marketplace adapters
- Part / SearchParams: Normalized record and query types
- FetchContext: Cancellable context passed to every fetch
- Adapters: Site-specific implementations (in adapters/ directory)
"""

from .base import (
    AuthenticationError,
    DateParseError,
    FetchCancelled,
    FetchError,
    ImageFetchError,
    Part,
    PartParseError,
    SearchParams,
    SiteClient,
    SiteClientError,
)
from .context import FetchContext
from .http import create_session
from .site_config import SiteConfig, build_site_clients, load_sites_config

__all__ = [
    "AuthenticationError",
    "DateParseError",
    "FetchCancelled",
    "FetchContext",
    "FetchError",
    "ImageFetchError",
    "Part",
    "PartParseError",
    "SearchParams",
    "SiteClient",
    "SiteClientError",
    "SiteConfig",
    "build_site_clients",
    "create_session",
    "load_sites_config",
]
__version__ = "0.1.0"
