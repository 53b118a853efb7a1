"""Site Client Base Class.

This module defines the normalized ``Part`` record, the ``SearchParams`` query
and the abstract interface that every marketplace adapter must implement.
Keeping one contract for all sources means the caller never needs to know
whether parts came from scraped HTML, a form search or a REST API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .context import FetchContext


@dataclass(frozen=True)
class Part:
    """A single car part listing, normalized across all sources.

    Instances are created once per source item during a fetch and never
    mutated afterwards.
    """

    id: str  # Source-native identifier, only unique within its source
    url: str  # Absolute listing URL
    site_id: int  # Configured identity of the source that produced the part
    name: str = ""
    description: str = ""
    type_name: str = ""  # Reserved, no source populates it yet
    price: str = ""  # Currency-prefixed free text, e.g. "€ 120"
    image_base64: str = ""  # Empty when there was no image or it failed to load
    creation_date: Optional[datetime] = None  # None when the date was unparseable

    def to_dict(self) -> dict[str, Any]:
        """Serialize the part using the public wire field names."""
        return {
            "id": self.id,
            "description": self.description,
            "type_name": self.type_name,
            "name": self.name,
            "image_base64": self.image_base64,
            "url": self.url,
            "site_id": self.site_id,
            "price": self.price,
            "creation_date": (
                self.creation_date.isoformat() if self.creation_date else None
            ),
        }


@dataclass
class SearchParams:
    """Caller-supplied search parameters.

    Adapters interpret these loosely. Some ignore the vehicle identity fields
    and search a fixed target instead. ``limit`` is an upper bound on returned
    parts, not a page size hint; 0 means "no limit".
    """

    vehicle_type: str = ""
    make: str = ""
    base_model: str = ""
    model: str = ""
    year_from: int = 0
    year_to: int = 0
    offset: int = 0
    limit: int = 0


class SiteClientError(Exception):
    """Base exception for a failed fetch."""

    pass


class FetchError(SiteClientError):
    """Fatal transport or payload error while fetching from a site.

    Attributes:
        url: URL of the request that failed (if known)
        page: Page number that failed (if the site paginates)
    """

    def __init__(self, message: str, url: Optional[str] = None, page: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.page = page


class DateParseError(FetchError):
    """Raised when a site that requires a listing date returns an unparseable one."""

    pass


class AuthenticationError(SiteClientError):
    """Raised when the OAuth token exchange fails."""

    pass


class FetchCancelled(SiteClientError):
    """Raised when the fetch context was cancelled or its deadline passed."""

    pass


class PartParseError(Exception):
    """A single listing could not be converted into a Part.

    Item-level only: adapters catch it, log a warning and skip the item.
    """

    pass


class ImageFetchError(Exception):
    """An image could not be downloaded. The part is kept without image."""

    pass


class SiteClient(ABC):
    """Abstract base class for marketplace adapters.

    All sources must implement this interface. This ensures:
    - One normalized record type (``Part``) regardless of transport
    - One termination contract: a complete list, or an exception
    - ``site_id`` echoed into every returned part

    Usage:
        class MySiteAdapter(SiteClient):
            def __init__(self, site_id: int):
                super().__init__(site_id=site_id, name="MySite")

            def fetch_parts(self, ctx, params):
                # Paginate, convert items to Part objects
                ...
    """

    def __init__(self, site_id: int, name: str):
        """Initialize the adapter.

        Args:
            site_id: Configured numeric identity of the site
            name: Stable human-readable label (e.g. "Kleinanzeigen")
        """
        self._site_id = site_id
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def site_id(self) -> int:
        return self._site_id

    def get_name(self) -> str:
        """Return the human-readable name of the site."""
        return self._name

    def get_site_id(self) -> int:
        """Return the configured identity of the site."""
        return self._site_id

    @abstractmethod
    def fetch_parts(self, ctx: "FetchContext", params: SearchParams) -> list[Part]:
        """Fetch all parts matching the search parameters.

        This method should handle:
        - Driving the site's own pagination until it terminates
        - Converting site-native items into Part objects
        - Checking ``ctx`` around every network call

        Args:
            ctx: Cancellable fetch context
            params: Search parameters

        Returns:
            Complete, order-preserving list of parts. An empty list means the
            query succeeded but matched nothing.

        Raises:
            FetchError: On connection failures, unexpected status codes or
                malformed payloads. No partial results are returned.
            AuthenticationError: If the site requires a token and it could
                not be obtained
            FetchCancelled: If ``ctx`` was cancelled during the fetch
        """
        pass

    def __repr__(self) -> str:
        """String representation of the adapter."""
        return f"{self.__class__.__name__}(name='{self._name}', site_id={self._site_id})"
