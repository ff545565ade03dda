"""
Image fetching and MIME handling for Gemini inline payloads.
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from tryon_studio.config import logger
from tryon_studio.errors import ImageFetchError, MimeTypeError

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537.3"
    ),
    "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
}

EXTENSION_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "heic": "image/heic",
}


@dataclass(frozen=True)
class InlineData:
    """Base64 payload plus MIME type, ready to embed in a Gemini request."""

    data: str
    mime_type: str

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "InlineData":
        return cls(data=base64.b64encode(raw).decode("utf-8"), mime_type=mime_type)

    def as_part(self) -> Dict[str, Any]:
        """Content part for generateContent."""
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data}}

    def as_video_image(self) -> Dict[str, str]:
        """Image field for a Veo predictLongRunning instance."""
        return {"bytesBase64Encoded": self.data, "mimeType": self.mime_type}


def infer_mime_type_from_url(url: str) -> Optional[str]:
    """Infer an image MIME type from the URL's file extension, ignoring query and fragment."""
    clean = url.split("?")[0].split("#")[0]
    if "." not in clean:
        return None
    ext = clean.rsplit(".", 1)[-1].lower()
    return EXTENSION_MIME_TYPES.get(ext)


def resolve_mime_type(
    url: str,
    explicit: Optional[str] = None,
    content_type: Optional[str] = None,
) -> str:
    """
    Pick the MIME type for an image.

    Order: explicit caller value, then the response content-type header, then
    the URL extension.

    Raises:
        MimeTypeError: If none of the three resolve
    """
    resolved = explicit or content_type or infer_mime_type_from_url(url)
    if not resolved:
        logger.error(f"[mime] Unable to determine MIME type for URL={url}")
        raise MimeTypeError(
            f"Unable to determine MIME type for image at URL: {url}. "
            "Provide mimeType explicitly or ensure the URL has a known extension."
        )
    return resolved


async def fetch_image_inline_data(
    http: httpx.AsyncClient,
    image_url: str,
    mime_type: Optional[str] = None,
    referer: Optional[str] = None,
) -> InlineData:
    """
    Fetch an image from a URL and return it as Gemini inline data.

    Args:
        http: Shared async HTTP client
        image_url: Public or signed URL of the image
        mime_type: Explicit MIME type, wins over the response header
        referer: Optional Referer header for hosts that check it

    Raises:
        ImageFetchError: On network failure or a non-2xx response
        MimeTypeError: If no MIME type can be resolved
    """
    headers = dict(BROWSER_HEADERS)
    if referer:
        headers["Referer"] = referer

    try:
        response = await http.get(image_url, headers=headers)
    except httpx.RequestError as exc:
        logger.error(f"[net] Network error fetching URL={image_url}: {exc}")
        raise ImageFetchError(f"Network error fetching {image_url}: {exc}") from exc

    if not response.is_success:
        logger.error(
            f"[net] Failed to fetch image from URL={image_url}, status={response.status_code}"
        )
        raise ImageFetchError(
            f"Failed to fetch image from URL: {image_url} (status {response.status_code})"
        )

    resolved = resolve_mime_type(
        image_url,
        explicit=mime_type,
        content_type=response.headers.get("content-type") or None,
    )
    content = response.content
    logger.info(f"[net] Fetched image from URL={image_url}, bytes={len(content)}")
    return InlineData.from_bytes(content, resolved)
