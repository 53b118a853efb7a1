"""
Pytest configuration and shared fixtures

This file contains test fixtures that can be used across all tests.
Fixtures are reusable components that set up test preconditions.

Learn more: https://docs.pytest.org/en/stable/fixture.html
"""

from datetime import datetime
from unittest.mock import Mock

import pytest
import requests

from partsfinder.site_clients import FetchContext, Part


def make_response(status_code: int = 200, text: str = "", json_data=None, content: bytes = b"") -> Mock:
    """
    Build a mocked requests.Response.

    Args:
        status_code: HTTP status code
        text: Response body as text
        json_data: Value returned by response.json() (raises ValueError if None)
        content: Raw response body
    """
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.content = content
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture(scope="function")
def mock_session() -> Mock:
    """
    Provide a mocked requests.Session.

    Tests configure session.get / session.post return values or side effects.

    Scope: function (created fresh for each test)
    """
    return Mock(spec=requests.Session)


@pytest.fixture(scope="function")
def ctx() -> FetchContext:
    """Provide a fetch context without deadline."""
    return FetchContext()


@pytest.fixture(scope="function")
def sample_part() -> Part:
    """
    Provide a sample part for testing.

    Returns:
        Part: Sample part listing
    """
    return Part(
        id="2871234567",
        url="https://www.kleinanzeigen.de/s-anzeige/scheinwerfer-links/2871234567",
        site_id=1,
        name="Scheinwerfer links Eclipse D30",
        description="Guter Zustand, keine Risse",
        price="45 € VB",
        creation_date=datetime(2024, 3, 10, 14, 5),
    )


# Mark tests based on their type for selective running
def pytest_configure(config):
    """
    Register custom pytest markers.

    This allows us to run specific test categories:
    - pytest -m unit        (run only unit tests)
    - pytest -m integration (run only integration tests)
    - pytest -m "not slow"  (skip slow tests)
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (isolated, fast)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires network)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (>1 second)"
    )
