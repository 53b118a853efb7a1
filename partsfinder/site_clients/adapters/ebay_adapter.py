"""
eBay Adapter for the eBay Browse API.

Authenticates with the OAuth2 client credentials grant and pages through the
item summary search with a numeric offset.
API Documentation: https://developer.ebay.com/api-docs/buy/browse/resources/item_summary/methods/search
"""

import logging
import os
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
from dotenv import load_dotenv

from ..base import AuthenticationError, FetchError, Part, SearchParams, SiteClient
from ..context import FetchContext
from ..dates import parse_iso_datetime
from ..http import API_TIMEOUT_SECONDS, create_session
from ..images import inline_image

# Load environment variables from .env
load_dotenv()

logger = logging.getLogger(__name__)

# Constants
SANDBOX_API_HOST = "https://api.sandbox.ebay.com"
PRODUCTION_API_HOST = "https://api.ebay.com"
TOKEN_PATH = "/identity/v1/oauth2/token"
SEARCH_PATH = "/buy/browse/v1/item_summary/search"
OAUTH_SCOPE = "https://api.ebay.com/oauth/api_scope"
TOKEN_TIMEOUT_SECONDS = 10
TOKEN_EXPIRY_SKEW_SECONDS = 60
PAGE_SIZE = 200
DEFAULT_QUERY = "(Mitsubishi Eclipse 2g, D32A)"
DEFAULT_CATEGORY_IDS = "6030"  # Car & Truck Parts
CURRENCY_SYMBOLS = {"EUR": "€"}


@dataclass
class AccessToken:
    value: str
    expires_at: float  # Clock time after which the token must be refreshed


class TokenHolder:
    """
    Lock-guarded OAuth token cache owned by one adapter instance.

    Concurrent fetches on the same adapter share the token; only one of them
    performs the exchange when it is missing or expired.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._lock = threading.Lock()
        self._token: Optional[AccessToken] = None
        self._clock = clock

    def get(self, acquire: Callable[[], tuple[str, int]]) -> str:
        """
        Return a valid token, calling ``acquire`` when a new one is needed.

        Args:
            acquire: Performs the exchange and returns (access_token, expires_in)
        """
        with self._lock:
            if self._token is not None and self._clock() < self._token.expires_at:
                return self._token.value

            value, expires_in = acquire()
            lifetime = max(0, expires_in - TOKEN_EXPIRY_SKEW_SECONDS)
            self._token = AccessToken(value=value, expires_at=self._clock() + lifetime)
            return value

    def invalidate(self) -> None:
        with self._lock:
            self._token = None


class EbayAdapter(SiteClient):
    """
    Adapter for the eBay Browse API.

    Searches a fixed keyword/category combination. ``params.limit`` is not
    applied: every page is fetched until the API returns a short page.

    Environment Variables:
        EBAY_CLIENT_ID: eBay application (client) id
        EBAY_CLIENT_SECRET: eBay client secret
    """

    def __init__(
        self,
        site_id: int,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        sandbox: bool = False,
        session: Optional[requests.Session] = None,
        query: str = DEFAULT_QUERY,
        category_ids: str = DEFAULT_CATEGORY_IDS,
        token_holder: Optional[TokenHolder] = None,
    ):
        """
        Initialize the eBay adapter.

        Args:
            site_id: Configured identity of this site
            client_id: eBay client id (defaults to EBAY_CLIENT_ID env var)
            client_secret: eBay client secret (defaults to EBAY_CLIENT_SECRET env var)
            sandbox: Use the sandbox hosts instead of production
            session: Shared HTTP session (a new one is created if omitted)
            query: Search keywords
            category_ids: eBay category filter
            token_holder: Token cache (a fresh one is created if omitted)
        """
        super().__init__(site_id=site_id, name="eBay")

        self.client_id = client_id or os.getenv("EBAY_CLIENT_ID")
        self.client_secret = client_secret or os.getenv("EBAY_CLIENT_SECRET")

        if not self.client_id or not self.client_secret:
            raise ValueError(
                "EBAY_CLIENT_ID and EBAY_CLIENT_SECRET must be set in environment "
                "or passed as parameters"
            )

        self.sandbox = sandbox
        self.session = session or create_session()
        self.query = query
        self.category_ids = category_ids
        self.tokens = token_holder or TokenHolder()

        api_host = SANDBOX_API_HOST if sandbox else PRODUCTION_API_HOST
        self.token_url = f"{api_host}{TOKEN_PATH}"
        self.search_url = f"{api_host}{SEARCH_PATH}"

    def _request_token(self, ctx: FetchContext) -> tuple[str, int]:
        """
        Exchange the client credentials for an application access token.

        Raises:
            AuthenticationError: On transport errors, non-200 or malformed body
        """
        logger.debug("Requesting eBay access token", extra={"url": self.token_url})
        try:
            response = self.session.post(
                self.token_url,
                data={"grant_type": "client_credentials", "scope": OAUTH_SCOPE},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                auth=(self.client_id, self.client_secret),
                timeout=ctx.timeout(TOKEN_TIMEOUT_SECONDS),
            )
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"failed to get token: {e}") from e

        if response.status_code != 200:
            raise AuthenticationError(
                f"token request failed with status {response.status_code}: {response.text}"
            )

        try:
            body = response.json()
            access_token = body["access_token"]
            expires_in = int(body.get("expires_in", 0))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(f"failed to parse token response: {e}") from e

        logger.info("eBay access token retrieved", extra={"expires_in": expires_in})
        return access_token, expires_in

    def get_access_token(self, ctx: FetchContext) -> str:
        ctx.check()
        token = self.tokens.get(lambda: self._request_token(ctx))
        ctx.check()
        return token

    def fetch_parts(self, ctx: FetchContext, params: SearchParams) -> list[Part]:
        """
        Fetch every result page of the fixed search.

        Raises:
            AuthenticationError: If no access token could be obtained
            FetchError: On transport errors, non-200 status or malformed JSON
        """
        logger.info(
            "Starting eBay fetch",
            extra={"site": self.name, "query": self.query, "sandbox": self.sandbox},
        )
        token = self.get_access_token(ctx)

        all_parts: list[Part] = []
        offset = 0
        while True:
            page = offset // PAGE_SIZE + 1
            items = self._fetch_page(ctx, token, offset, page)
            all_parts.extend(self.to_part(ctx, item) for item in items)

            logger.info(
                "Fetched eBay page",
                extra={"page": page, "offset": offset, "parts_in_page": len(items)},
            )

            if len(items) < PAGE_SIZE:
                break
            offset += PAGE_SIZE

        logger.info("Finished eBay fetch", extra={"total_parts": len(all_parts)})
        return all_parts

    def _fetch_page(
        self, ctx: FetchContext, token: str, offset: int, page: int
    ) -> list[Mapping[str, Any]]:
        query = {
            "sort": "newlyListed",
            "limit": str(PAGE_SIZE),
            "offset": str(offset),
            "q": self.query,
            "category_ids": self.category_ids,
        }

        ctx.check()
        try:
            response = self.session.get(
                self.search_url,
                params=query,
                headers={"Authorization": f"Bearer {token}"},
                timeout=ctx.timeout(API_TIMEOUT_SECONDS),
            )
        except requests.exceptions.RequestException as e:
            logger.error(
                "eBay search request failed",
                extra={"page": page, "offset": offset, "error": str(e)},
            )
            raise FetchError(
                f"failed to fetch page {page} (offset {offset}): {e}",
                url=self.search_url,
                page=page,
            ) from e
        ctx.check()

        if response.status_code != 200:
            if response.status_code == 401:
                self.tokens.invalidate()
            raise FetchError(
                f"failed to fetch page {page} (offset {offset}): {describe_api_error(response)}",
                url=self.search_url,
                page=page,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(
                f"failed to decode page {page} (offset {offset}): {e}",
                url=self.search_url,
                page=page,
            ) from e

        if not isinstance(payload, Mapping):
            raise FetchError(
                f"malformed response for page {page}: expected a JSON object",
                url=self.search_url,
                page=page,
            )

        logger.debug(
            "eBay search page decoded",
            extra={
                "total": payload.get("total"),
                "limit": payload.get("limit"),
                "offset": payload.get("offset"),
            },
        )
        items = payload.get("itemSummaries") or []
        if not isinstance(items, list) or not all(isinstance(item, Mapping) for item in items):
            raise FetchError(
                f"malformed response for page {page}: itemSummaries is not a list of objects",
                url=self.search_url,
                page=page,
            )
        return items

    def to_part(self, ctx: FetchContext, item: Mapping[str, Any]) -> Part:
        """Convert one item summary into a Part."""
        item_id = item.get("itemId") or ""
        title = item.get("title") or ""

        origin_date = item.get("itemOriginDate")
        creation_date = parse_iso_datetime(origin_date)
        if origin_date and creation_date is None:
            logger.warning(
                "Could not parse itemOriginDate",
                extra={"part_id": item_id, "date_text": origin_date},
            )

        thumbnails = item.get("thumbnailImages")
        first_thumbnail = thumbnails[0] if isinstance(thumbnails, list) and thumbnails else None
        image_url = first_thumbnail.get("imageUrl") if isinstance(first_thumbnail, Mapping) else None

        return Part(
            id=item_id,
            url=item.get("itemWebUrl") or "",
            site_id=self.site_id,
            name=title,
            description=title,
            price=format_price(item.get("price")),
            creation_date=creation_date,
            image_base64=inline_image(self.session, ctx, image_url, part_id=item_id),
        )


def format_price(price: Optional[Mapping[str, Any]]) -> str:
    """Format an eBay amount as "€ 12.50" (EUR) or "USD 12.50"."""
    if not isinstance(price, Mapping):
        price = {}
    value = price.get("value") or ""
    currency = price.get("currency") or "EUR"
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    return f"{symbol} {value}".rstrip()


def describe_api_error(response: requests.Response) -> str:
    """
    Build an error message from a non-200 Browse API response.

    Uses the first entry of the ``errors`` envelope when present, otherwise
    the raw body.
    """
    message = f"unexpected status code: {response.status_code}"
    body = response.text or ""
    if not body:
        return message

    try:
        errors = response.json().get("errors")
    except (ValueError, AttributeError):
        errors = None

    first = errors[0] if isinstance(errors, list) and errors else None
    if not isinstance(first, Mapping):
        return f"{message}: {body}"

    message += f": {first.get('message', '')}"
    if first.get("longMessage"):
        message += f" ({first['longMessage']})"
    return message
