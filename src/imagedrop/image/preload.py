"""Verify that a URL serves an image before it is committed to a node.

Equivalent of preloading the image in a browser: the final URL returned
by ``get_image_url`` is fetched once, and anything other than a
successful image response is reported as an
:class:`~imagedrop.errors.ImageVerificationError`.
"""

from __future__ import annotations

import httpx

from imagedrop.errors import ImageVerificationError
from imagedrop.observability import get_logger

log = get_logger("imagedrop.image")


async def verify_image_url(client: httpx.AsyncClient, url: str) -> None:
    """Fetch *url* and check that it serves an image.

    A response without a ``Content-Type`` header is accepted; one that
    declares a non-``image/*`` type is not.

    Raises
    ------
    ImageVerificationError
        On transport failure, a status code of 300 or above (after
        redirects), or a non-image content type.
    """
    try:
        response = await client.get(url, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise ImageVerificationError(
            message=f"Could not fetch image at {url}: {exc}",
            context={"url": url},
            cause=exc,
        ) from exc

    if response.status_code >= 300:
        raise ImageVerificationError(
            message=f"Image at {url} answered with status {response.status_code}",
            context={"url": url, "status_code": response.status_code},
        )

    content_type = response.headers.get("content-type", "")
    if content_type and not content_type.lower().startswith("image/"):
        raise ImageVerificationError(
            message=f"URL {url} does not serve an image ({content_type})",
            context={
                "url": url,
                "status_code": response.status_code,
                "content_type": content_type,
            },
        )

    log.debug(
        "Image URL verified",
        extra={"extra_fields": {"op": "verify_image_url", "url": url}},
    )
