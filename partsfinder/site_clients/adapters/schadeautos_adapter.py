"""
SchadeAutos Adapter for the schadeautos.nl parts search.

The site backend supports bulk paging natively, so one form-encoded POST
returns every matching part at once.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

import requests

from ..base import DateParseError, FetchError, Part, SearchParams, SiteClient
from ..context import FetchContext
from ..dates import parse_enter_date
from ..http import API_TIMEOUT_SECONDS, BROWSER_USER_AGENT, create_session
from ..images import inline_image

logger = logging.getLogger(__name__)

# Constants
BASE_URL = "https://www.schadeautos.nl"
SEARCH_PATH = "/parts/eng/search.json"
DEFAULT_YEAR_FROM = 1995
DEFAULT_YEAR_TO = 2000
DEFAULT_LIMIT = 3000  # Large enough to request effectively all results in one call

# Vehicle selector codes of the site's search widget (Mitsubishi Eclipse D30)
DEFAULT_VEHICLE = {
    "vehicle_type": "P",
    "make": "A0001E2D",
    "base_model": "A0001FHK",
    "model": "A0001FHL",
}


class SchadeAutosAdapter(SiteClient):
    """
    Adapter for the SchadeAutos JSON parts search.

    The vehicle selector is fixed at construction time; the caller's year
    range, offset and limit are forwarded to the backend. Every stock part
    must carry a parseable ``enterDate``: one bad date fails the whole fetch.
    """

    def __init__(
        self,
        site_id: int,
        session: Optional[requests.Session] = None,
        vehicle: Optional[Mapping[str, str]] = None,
        base_url: str = BASE_URL,
    ):
        """
        Initialize the SchadeAutos adapter.

        Args:
            site_id: Configured identity of this site
            session: Shared HTTP session (a new one is created if omitted)
            vehicle: Override for the selector codes (keys: vehicle_type,
                make, base_model, model)
            base_url: Site base URL
        """
        super().__init__(site_id=site_id, name="SchadeAutos")
        self.session = session or create_session()
        self.vehicle = {**DEFAULT_VEHICLE, **(vehicle or {})}
        self.base_url = base_url.rstrip("/")

    def build_form_data(self, params: SearchParams) -> dict[str, str]:
        """Build the search widget form, applying fallback years and limit."""
        return {
            "widget[vehicleType]": self.vehicle["vehicle_type"],
            "widget[make]": self.vehicle["make"],
            "widget[baseModel]": self.vehicle["base_model"],
            "widget[model]": self.vehicle["model"],
            "widget[type]": "",
            "widget[vehicle]": "",
            "widget[yearFrom]": str(params.year_from or DEFAULT_YEAR_FROM),
            "widget[yearTo]": str(params.year_to or DEFAULT_YEAR_TO),
            "widget[category]": "",
            "widget[part]": "",
            "widget[priceMax]": "",
            "widget[query]": "",
            "offset": str(params.offset),
            "limit": str(params.limit or DEFAULT_LIMIT),
            "order": "",
            "shop": "",
            "screenWidth": "2560",
            "action": "search",
        }

    def fetch_parts(self, ctx: FetchContext, params: SearchParams) -> list[Part]:
        """
        Run the bulk search and convert every stock part.

        The order of the returned list follows the response mapping and is not
        stable across calls.

        Raises:
            FetchError: On transport errors, non-200 status or malformed JSON
            DateParseError: If any stock part has an unparseable enterDate
        """
        api_url = f"{self.base_url}{SEARCH_PATH}"
        headers = {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "application/json, text/javascript, */*; q=0.01",
            "Accept-Language": "en-US,en;q=0.5",
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
            "X-Requested-With": "XMLHttpRequest",
            "Origin": self.base_url,
            "Referer": f"{self.base_url}/parts/eng/car-parts",
        }

        ctx.check()
        try:
            response = self.session.post(
                api_url,
                data=self.build_form_data(params),
                headers=headers,
                timeout=ctx.timeout(API_TIMEOUT_SECONDS),
            )
        except requests.exceptions.RequestException as e:
            logger.error(
                "SchadeAutos search request failed",
                extra={"url": api_url, "error": str(e)},
            )
            raise FetchError(f"failed to execute request to {api_url}: {e}", url=api_url) from e
        ctx.check()

        if response.status_code != 200:
            raise FetchError(
                f"unexpected status code from {api_url}: {response.status_code}", url=api_url
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"failed to decode response from {api_url}: {e}", url=api_url) from e

        stock_parts = self._extract_stock_parts(payload, api_url)

        result = payload["result"]
        logger.info(
            "SchadeAutos response parsed",
            extra={
                "limited": result.get("limited"),
                "descr": result.get("descr"),
                "parts_count": len(stock_parts),
            },
        )

        parts = []
        for part_id, stock_part in stock_parts.items():
            if not isinstance(stock_part, Mapping):
                raise FetchError(
                    f"malformed response from {api_url}: stock part {part_id} is not an object",
                    url=api_url,
                )
            parts.append(self.to_part(ctx, str(part_id), stock_part, api_url))
        return parts

    def _extract_stock_parts(self, payload: Any, api_url: str) -> Mapping[str, Any]:
        if not isinstance(payload, Mapping) or not isinstance(payload.get("result"), Mapping):
            raise FetchError(f"malformed response from {api_url}: missing result", url=api_url)

        stock_parts = payload["result"].get("stockParts")
        # PHP encodes an empty mapping as []
        if stock_parts == []:
            return {}
        if not isinstance(stock_parts, Mapping):
            raise FetchError(
                f"malformed response from {api_url}: stockParts is not a mapping", url=api_url
            )
        return stock_parts

    def to_part(
        self, ctx: FetchContext, part_id: str, stock_part: Mapping[str, Any], api_url: str
    ) -> Part:
        """Convert one stock part; raises DateParseError on a bad enterDate."""
        enter_date = stock_part.get("enterDate")
        creation_date = parse_enter_date(enter_date)
        if creation_date is None:
            raise DateParseError(
                f"part {part_id}: could not parse enterDate {enter_date!r}", url=api_url
            )

        return Part(
            id=part_id,
            url=self.build_part_url(part_id),
            site_id=self.site_id,
            name=stock_part.get("name") or "",
            description=stock_part.get("descr") or "",
            price=f"€ {stock_part.get('price') or ''}".rstrip(),
            creation_date=creation_date,
            image_base64=inline_image(
                self.session,
                ctx,
                stock_part.get("picture"),
                part_id=part_id,
                base_url=self.base_url,
            ),
        )

    def build_part_url(self, part_id: str) -> str:
        return f"{self.base_url}/parts/eng/part/{part_id}"
