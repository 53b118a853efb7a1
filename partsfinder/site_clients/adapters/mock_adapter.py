"""Mock Adapter for Testing.

This adapter simulates a paginated parts marketplace for tests and dry runs.
It doesn't make real HTTP requests, but follows the same termination rules as
the scraped-listing adapter.
"""

from datetime import datetime, timedelta

from ..base import FetchError, Part, SearchParams, SiteClient
from ..context import FetchContext


class MockAdapter(SiteClient):
    """Mock adapter that returns fake parts page by page.

    This adapter is useful for:
    - Contract tests without hitting real sites
    - ``--dry-run`` runs of the command line tool
    - Testing error handling of callers

    Example:
        adapter = MockAdapter(site_id=7, num_parts=30, parts_per_page=10)
        parts = adapter.fetch_parts(FetchContext(), SearchParams())
        assert len(parts) == 30
        assert adapter.page_requests == 3
    """

    def __init__(
        self,
        site_id: int = 0,
        num_parts: int = 100,
        parts_per_page: int = 20,
        fail_on_page: int = 0,
        name: str = "Mock",
    ):
        """Initialize the mock adapter.

        Args:
            site_id: Site identity echoed into every part
            num_parts: Total number of fake parts available
            parts_per_page: Number of parts per simulated page
            fail_on_page: If > 0, raise FetchError when this page is requested
            name: Adapter name
        """
        super().__init__(site_id=site_id, name=name)
        self.num_parts = num_parts
        self.parts_per_page = parts_per_page
        self.fail_on_page = fail_on_page
        self.page_requests = 0

    def fetch_parts(self, ctx: FetchContext, params: SearchParams) -> list[Part]:
        """Page through the fake inventory, honoring ``params.limit``."""
        parts: list[Part] = []
        page = 1

        while True:
            ctx.check()
            self.page_requests += 1
            if self.fail_on_page > 0 and page == self.fail_on_page:
                raise FetchError(f"simulated failure on page {page}", page=page)

            start_idx = (page - 1) * self.parts_per_page
            end_idx = min(start_idx + self.parts_per_page, self.num_parts)
            page_parts = [self._generate_fake_part(i) for i in range(start_idx, end_idx)]

            if not page_parts:
                break

            parts.extend(page_parts)

            if params.limit > 0 and len(parts) >= params.limit:
                return parts[: params.limit]

            if len(page_parts) < self.parts_per_page:
                break
            page += 1

        return parts

    def _generate_fake_part(self, index: int) -> Part:
        """Generate a fake part listing.

        Args:
            index: Part index for unique data

        Returns:
            Part with fake data
        """
        part_names = [
            "Headlight left",
            "Rear bumper",
            "Turbocharger TD05",
            "Intercooler",
            "Door mirror right",
            "Instrument cluster",
        ]
        name = part_names[index % len(part_names)]

        return Part(
            id=f"mock_{index}",
            url=f"https://example.com/parts/{index}",
            site_id=self.site_id,
            name=name,
            description=f"Used {name.lower()} for Mitsubishi Eclipse D30",
            price=f"€ {20 + (index * 5) % 400}",
            creation_date=datetime(2025, 10, 15, 10, 0) - timedelta(hours=index),
        )
