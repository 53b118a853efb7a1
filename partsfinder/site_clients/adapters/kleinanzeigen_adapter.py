"""
Kleinanzeigen Adapter for scraped classifieds listings.

Scrapes the kleinanzeigen.de search result pages page by page and extracts one
Part per ``article.aditem`` element.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from bs4.element import Tag

from ..base import FetchError, Part, PartParseError, SearchParams, SiteClient
from ..context import FetchContext
from ..dates import parse_listing_date
from ..http import API_TIMEOUT_SECONDS, create_session
from ..images import inline_image

logger = logging.getLogger(__name__)

# Constants
BASE_URL = "https://www.kleinanzeigen.de"
SEARCH_PATH = "/s-suchanfrage.html"
AUTO_PARTS_CATEGORY_ID = "223"
DEFAULT_KEYWORDS = "Mitsubishi Eclipse D30"
ITEMS_PER_PAGE = 25  # Kleinanzeigen shows 25 ads per result page
MAX_PAGES = 100  # Safety limit against runaway pagination
ITEM_SELECTOR = "article.aditem"

PAGE_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}


class KleinanzeigenAdapter(SiteClient):
    """
    Adapter for kleinanzeigen.de search result pages.

    The vehicle identity fields of SearchParams are ignored; the adapter
    always searches the auto parts category for a fixed keyword string.
    ``params.limit`` is honored as an upper bound on returned parts.
    """

    def __init__(
        self,
        site_id: int,
        session: Optional[requests.Session] = None,
        keywords: str = DEFAULT_KEYWORDS,
        base_url: str = BASE_URL,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the Kleinanzeigen adapter.

        Args:
            site_id: Configured identity of this site
            session: Shared HTTP session (a new one is created if omitted)
            keywords: Search keywords (default: "Mitsubishi Eclipse D30")
            base_url: Site base URL
            clock: Returns "now" for relative dates such as "Heute, 14:05"
        """
        super().__init__(site_id=site_id, name="Kleinanzeigen")
        self.session = session or create_session()
        self.keywords = keywords
        self.base_url = base_url.rstrip("/")
        self.clock = clock

    def build_search_url(self, page: int) -> str:
        """Build the search URL for a result page (1-based)."""
        query = {
            "categoryId": AUTO_PARTS_CATEGORY_ID,
            "keywords": self.keywords,
            "locationStr": "Deutschland",
            "radius": "0",
            "sortingField": "",
            "adType": "",
            "posterType": "",
            "maxPrice": "",
            "minPrice": "",
            "buyNowEnabled": "false",
            "shippingCarrier": "",
            "shipping": "",
        }
        if page > 1:
            query["pageNum"] = str(page)

        prepared = requests.Request("GET", f"{self.base_url}{SEARCH_PATH}", params=query).prepare()
        return prepared.url

    def fetch_parts(self, ctx: FetchContext, params: SearchParams) -> list[Part]:
        """
        Fetch all result pages until the listing is exhausted.

        Stops on an empty page, a short page (fewer than 25 ads), when
        ``params.limit`` is reached, or after MAX_PAGES pages.
        """
        logger.info(
            "Starting Kleinanzeigen fetch",
            extra={"site": self.name, "keywords": self.keywords, "limit": params.limit},
        )

        all_parts: list[Part] = []
        page = 1

        while page <= MAX_PAGES:
            search_url = self.build_search_url(page)
            page_parts = self._fetch_page(ctx, search_url, page)

            logger.info(
                "Fetched Kleinanzeigen page",
                extra={"page": page, "parts_in_page": len(page_parts)},
            )

            if not page_parts:
                break

            all_parts.extend(page_parts)

            if params.limit > 0 and len(all_parts) >= params.limit:
                logger.info("Reached part limit", extra={"limit": params.limit})
                all_parts = all_parts[: params.limit]
                break

            if len(page_parts) < ITEMS_PER_PAGE:
                break

            page += 1

        logger.info(
            "Finished Kleinanzeigen fetch",
            extra={"total_parts": len(all_parts), "pages": min(page, MAX_PAGES)},
        )
        return all_parts

    def _fetch_page(self, ctx: FetchContext, search_url: str, page: int) -> list[Part]:
        ctx.check()
        logger.debug("Requesting Kleinanzeigen page", extra={"page": page, "url": search_url})
        try:
            response = self.session.get(
                search_url,
                headers=PAGE_HEADERS,
                timeout=ctx.timeout(API_TIMEOUT_SECONDS),
            )
        except requests.exceptions.RequestException as e:
            logger.error(
                "Kleinanzeigen page request failed",
                extra={"page": page, "url": search_url, "error": str(e)},
            )
            raise FetchError(
                f"failed to fetch page {page} ({search_url}): {e}", url=search_url, page=page
            ) from e
        ctx.check()

        if response.status_code != 200:
            raise FetchError(
                f"failed to fetch page {page} ({search_url}): "
                f"unexpected status code: {response.status_code}",
                url=search_url,
                page=page,
            )

        return self.parse_page(ctx, response.text)

    def parse_page(self, ctx: FetchContext, html: str) -> list[Part]:
        """Extract parts from one result page, skipping malformed ads."""
        soup = BeautifulSoup(html, "html.parser")

        parts = []
        for index, article in enumerate(soup.select(ITEM_SELECTOR)):
            try:
                parts.append(self.extract_part(ctx, article))
            except PartParseError as e:
                logger.warning(
                    "Skipping malformed Kleinanzeigen ad",
                    extra={"index": index, "error": str(e)},
                )
        return parts

    def extract_part(self, ctx: FetchContext, article: Tag) -> Part:
        """
        Convert one ``article.aditem`` element into a Part.

        Raises:
            PartParseError: If the ad id, link or title is missing
        """
        ad_id = (article.get("data-adid") or "").strip()
        if not ad_id:
            raise PartParseError("missing data-adid")

        relative_url = (article.get("data-href") or "").strip()
        if not relative_url:
            raise PartParseError(f"ad {ad_id}: missing data-href")

        title = _select_text(article, "h2 a.ellipsis")
        if not title:
            raise PartParseError(f"ad {ad_id}: missing title")

        image_src = None
        image = article.select_one(".imagebox img")
        if image is not None:
            image_src = image.get("src") or image.get("data-imgsrc")

        return Part(
            id=ad_id,
            url=urljoin(self.base_url + "/", relative_url),
            site_id=self.site_id,
            name=title,
            description=_select_text(article, "p.aditem-main--middle--description"),
            price=_select_text(article, "p.aditem-main--middle--price-shipping--price"),
            creation_date=self._extract_date(article, ad_id),
            image_base64=inline_image(
                self.session, ctx, image_src, part_id=ad_id, base_url=self.base_url
            ),
        )

    def _extract_date(self, article: Tag, ad_id: str) -> Optional[datetime]:
        date_text = _select_text(article, ".aditem-main--top--right")
        if not date_text:
            logger.warning("No date text found", extra={"part_id": ad_id})
            return None

        creation_date = parse_listing_date(date_text, self.clock())
        if creation_date is None:
            logger.warning(
                "Could not parse date text",
                extra={"part_id": ad_id, "date_text": date_text},
            )
        return creation_date


def _select_text(node: Tag, css: str) -> str:
    el = node.select_one(css)
    return el.get_text(" ", strip=True) if el else ""
