"""
Image inlining for part listings.

Downloads a listing thumbnail and returns it base64-encoded so it can be
embedded directly into ``Part.image_base64``. A failed download never fails
the enclosing part.
"""

import base64
import logging
from typing import Optional

import requests

from .base import ImageFetchError
from .context import FetchContext
from .http import API_TIMEOUT_SECONDS, BROWSER_USER_AGENT

logger = logging.getLogger(__name__)


def resolve_image_url(image_url: str, base_url: Optional[str] = None) -> str:
    """
    Resolve protocol-relative and host-relative image URLs.

    Examples:
        "//img.example/x.jpg" -> "https://img.example/x.jpg"
        "/img/x.jpg" (base "https://site.example") -> "https://site.example/img/x.jpg"
    """
    if image_url.startswith("//"):
        return "https:" + image_url
    if image_url.startswith("/") and base_url:
        return base_url.rstrip("/") + image_url
    return image_url


def fetch_image_as_base64(
    session: requests.Session,
    ctx: FetchContext,
    image_url: str,
    base_url: Optional[str] = None,
) -> str:
    """
    Download an image and return its body base64-encoded.

    Args:
        session: Shared HTTP session
        ctx: Fetch context (checked before and after the request)
        image_url: Absolute, protocol-relative or host-relative image URL
        base_url: Site base URL used for host-relative URLs

    Returns:
        Base64 string of the full response body

    Raises:
        ImageFetchError: On network errors or non-200 responses
        FetchCancelled: If the context was cancelled
    """
    url = resolve_image_url(image_url, base_url)

    ctx.check()
    try:
        response = session.get(
            url,
            headers={"User-Agent": BROWSER_USER_AGENT},
            timeout=ctx.timeout(API_TIMEOUT_SECONDS),
        )
    except requests.exceptions.RequestException as e:
        raise ImageFetchError(f"failed to fetch image {url}: {e}") from e
    ctx.check()

    if response.status_code != 200:
        raise ImageFetchError(
            f"unexpected status code for image {url}: {response.status_code}"
        )

    return base64.b64encode(response.content).decode("ascii")


def inline_image(
    session: requests.Session,
    ctx: FetchContext,
    image_url: Optional[str],
    part_id: str,
    base_url: Optional[str] = None,
) -> str:
    """Best-effort variant of fetch_image_as_base64: returns "" on failure."""
    if not image_url or not isinstance(image_url, str):
        return ""

    try:
        return fetch_image_as_base64(session, ctx, image_url, base_url=base_url)
    except ImageFetchError as e:
        logger.warning(
            "Failed to fetch image for part",
            extra={"part_id": part_id, "image_url": image_url, "error": str(e)},
        )
        return ""
