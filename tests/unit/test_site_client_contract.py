"""Contract tests for SiteClient implementations.

These tests ensure that any implementation of SiteClient follows the interface contract.
They can be run against any adapter (MockAdapter, real adapters with mocked sessions, etc.).
"""

import dataclasses
from datetime import datetime

import pytest

from partsfinder.site_clients import FetchContext, FetchError, Part, SearchParams, SiteClient
from partsfinder.site_clients.adapters.mock_adapter import MockAdapter


class TestSiteClientContract:
    """Contract tests that all SiteClient implementations must pass."""

    @pytest.fixture
    def adapter(self) -> SiteClient:
        """Provide an adapter instance for testing.

        This fixture returns a MockAdapter by default, but can be overridden
        to test other adapter implementations.
        """
        return MockAdapter(site_id=9, num_parts=50, parts_per_page=10)

    def test_adapter_has_name(self, adapter: SiteClient):
        """Adapter must have a non-empty name."""
        assert isinstance(adapter.name, str)
        assert len(adapter.name) > 0
        assert adapter.get_name() == adapter.name

    def test_adapter_has_site_id(self, adapter: SiteClient):
        assert adapter.site_id == 9
        assert adapter.get_site_id() == 9

    def test_fetch_returns_list_of_parts(self, adapter: SiteClient):
        """fetch_parts() must return a list of Part objects."""
        parts = adapter.fetch_parts(FetchContext(), SearchParams())

        assert isinstance(parts, list)
        assert all(isinstance(part, Part) for part in parts)

    def test_every_part_carries_site_id(self, adapter: SiteClient):
        parts = adapter.fetch_parts(FetchContext(), SearchParams())

        assert parts
        assert all(part.site_id == adapter.site_id for part in parts)

    def test_pagination_collects_all_pages(self):
        adapter = MockAdapter(num_parts=30, parts_per_page=10)

        parts = adapter.fetch_parts(FetchContext(), SearchParams())

        assert len(parts) == 30
        # Three full pages plus one empty page that ends the listing
        assert adapter.page_requests == 4
        assert len({part.id for part in parts}) == 30

    def test_short_last_page_stops(self):
        adapter = MockAdapter(num_parts=35, parts_per_page=10)

        parts = adapter.fetch_parts(FetchContext(), SearchParams())

        assert len(parts) == 35
        assert adapter.page_requests == 4

    def test_limit_is_upper_bound(self, adapter: SiteClient):
        parts = adapter.fetch_parts(FetchContext(), SearchParams(limit=15))

        assert len(parts) == 15

    def test_failure_returns_no_partial_list(self):
        adapter = MockAdapter(num_parts=50, parts_per_page=10, fail_on_page=3)

        with pytest.raises(FetchError, match="page 3"):
            adapter.fetch_parts(FetchContext(), SearchParams())

    def test_empty_source_is_not_an_error(self):
        adapter = MockAdapter(num_parts=0)

        assert adapter.fetch_parts(FetchContext(), SearchParams()) == []
        assert adapter.page_requests == 1

    def test_repr(self, adapter: SiteClient):
        assert repr(adapter) == "MockAdapter(name='Mock', site_id=9)"


class TestPart:
    """Test the normalized record."""

    def test_part_is_immutable(self, sample_part: Part):
        with pytest.raises(dataclasses.FrozenInstanceError):
            sample_part.price = "1 €"

    def test_defaults(self):
        part = Part(id="1", url="https://example.com/1", site_id=1)

        assert part.type_name == ""
        assert part.image_base64 == ""
        assert part.creation_date is None

    def test_to_dict(self, sample_part: Part):
        data = sample_part.to_dict()

        assert data == {
            "id": "2871234567",
            "description": "Guter Zustand, keine Risse",
            "type_name": "",
            "name": "Scheinwerfer links Eclipse D30",
            "image_base64": "",
            "url": "https://www.kleinanzeigen.de/s-anzeige/scheinwerfer-links/2871234567",
            "site_id": 1,
            "price": "45 € VB",
            "creation_date": "2024-03-10T14:05:00",
        }

    def test_to_dict_without_date(self):
        part = Part(id="1", url="https://example.com/1", site_id=1)

        assert part.to_dict()["creation_date"] is None

    def test_search_params_defaults(self):
        params = SearchParams()

        assert params.limit == 0
        assert params.year_from == 0
        assert params.make == ""

    def test_mock_dates_are_datetimes(self):
        part = MockAdapter(num_parts=1).fetch_parts(FetchContext(), SearchParams())[0]

        assert isinstance(part.creation_date, datetime)
