# app/integrations/storage.py

"""
File and image retrieval for lookup files and signature images.

Private Supabase storage URLs are exchanged for short-lived signed URLs
before download.
"""

import base64
import logging
import mimetypes
import re
import httpx

from app.config import get_settings
from app.database import supabase_admin

settings = get_settings()
logger = logging.getLogger(__name__)

STORAGE_URL_PATTERN = re.compile(r"/storage/v1/object/(?:public/|sign/)?([^/]+)/([^?]+)")
DATA_URL_PATTERN = re.compile(r"^data:(image/[\w.+-]+);base64,(.+)$", re.DOTALL)

SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


class StorageError(Exception):
    """A file or image could not be retrieved."""


def get_signed_url(url: str) -> str:
    """
    Return a signed URL for a Supabase storage object.

    Non-storage URLs are returned unchanged. If signing fails the original
    URL is used; the download will fail loudly if it really is private.
    """
    if "/storage/v1/object/" not in url:
        return url

    match = STORAGE_URL_PATTERN.search(url)
    if not match:
        return url

    bucket, path = match.group(1), match.group(2)

    try:
        signed = supabase_admin.storage.from_(bucket).create_signed_url(
            path, settings.signed_url_expiry_seconds
        )
    except Exception as e:
        logger.warning(f"Failed to create signed URL for {bucket}/{path}: {e}")
        return url

    signed_url = (signed or {}).get("signedURL") or (signed or {}).get("signedUrl")
    return signed_url or url


async def fetch_file(url: str) -> bytes:
    """Download a file, signing storage URLs first."""
    target = get_signed_url(url)

    try:
        async with httpx.AsyncClient(timeout=settings.file_fetch_timeout_seconds) as client:
            response = await client.get(target, follow_redirects=True)
    except httpx.HTTPError as e:
        raise StorageError(f"Could not fetch {url}: {e}") from e

    if response.status_code != 200:
        raise StorageError(f"Could not fetch {url}: HTTP {response.status_code}")

    return response.content


async def fetch_image(url: str) -> tuple[str, str]:
    """
    Load an image for the comparison service.

    Accepts data URLs as well as http(s)/storage URLs.

    Returns:
        (media_type, base64_data)
    """
    data_url = DATA_URL_PATTERN.match(url.strip())
    if data_url:
        return data_url.group(1), data_url.group(2)

    content = await fetch_file(url)
    media_type = _guess_media_type(url, content)

    return media_type, base64.b64encode(content).decode("ascii")


def _guess_media_type(url: str, content: bytes) -> str:
    """Sniff the image type from magic bytes, falling back to the extension."""
    if content.startswith(b"\x89PNG"):
        return "image/png"
    if content.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if content.startswith(b"GIF8"):
        return "image/gif"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"

    guessed, _ = mimetypes.guess_type(url.split("?", 1)[0])
    if guessed in SUPPORTED_IMAGE_TYPES:
        return guessed

    return "image/png"
