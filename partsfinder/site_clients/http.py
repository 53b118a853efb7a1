"""HTTP transport shared by all site adapters."""

import logging
import os
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

# Constants
API_TIMEOUT_SECONDS = 30
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:143.0) Gecko/20100101 Firefox/143.0"
)


class PartsSession(requests.Session):
    """requests.Session with a default timeout applied to every request."""

    def __init__(self, timeout: float = API_TIMEOUT_SECONDS):
        super().__init__()
        self.timeout = timeout

    def request(self, method: str, url: str, *args: Any, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        return super().request(method, url, *args, **kwargs)


def verify_tls_from_env() -> bool:
    """Read PARTSFINDER_VERIFY_TLS (default: verification enabled)."""
    value = os.getenv("PARTSFINDER_VERIFY_TLS", "true")
    return value.strip().lower() not in ("0", "false", "no", "off")


def create_session(
    verify_tls: Optional[bool] = None, timeout: float = API_TIMEOUT_SECONDS
) -> PartsSession:
    """
    Build the HTTP session shared by adapters.

    The underlying connection pool is safe to share between adapters and
    between concurrent fetches.

    Args:
        verify_tls: Verify server certificates (defaults to PARTSFINDER_VERIFY_TLS)
        timeout: Default timeout in seconds for every request

    Returns:
        Configured PartsSession
    """
    if verify_tls is None:
        verify_tls = verify_tls_from_env()

    session = PartsSession(timeout=timeout)
    session.verify = verify_tls

    if not verify_tls:
        logger.warning("TLS certificate verification is disabled")

    return session
