"""
Storage operations module for Supabase Storage.
Handles uploads, downloads and signed URLs for try-on inputs and results.
"""

from supabase import Client

from tryon_studio.config import logger
from tryon_studio.errors import StorageError

# Bucket names
COMBINATION_BUCKET = "tryon_combination_results"
TRYON_RESULTS_BUCKET = "tryon_results"
USER_UPLOADS_BUCKET = "user_uploads"
VIDEOS_BUCKET = "videos"

# Signed URL lifetimes
IMAGE_URL_TTL_SECONDS = 60 * 60 * 24 * 365  # 1 year
VIDEO_URL_TTL_SECONDS = 60 * 60  # 1 hour


async def upload_file(
    client: Client,
    bucket: str,
    path: str,
    file_bytes: bytes,
    content_type: str = "image/png",
) -> None:
    """
    Upload bytes to Supabase Storage, overwriting any existing object.

    Args:
        client: Supabase client for the current request
        bucket: Storage bucket name
        path: Object path inside the bucket
        file_bytes: Content to store
        content_type: MIME type recorded on the object (default: image/png)

    Raises:
        StorageError: If the upload fails
    """
    try:
        client.storage.from_(bucket).upload(
            path=path,
            file=file_bytes,
            file_options={"content-type": content_type, "upsert": "true"},
        )
    except Exception as e:
        logger.error(f"[storage] Error uploading to bucket={bucket} path={path}: {e}")
        raise StorageError(f"Error uploading file to storage at {path}: {e}") from e

    logger.info(
        f"[storage] Uploaded {len(file_bytes)} bytes to bucket={bucket} path={path}"
    )


async def create_signed_url(client: Client, bucket: str, path: str, expires_in: int) -> str:
    """
    Mint a time-limited signed URL for an object.

    Args:
        client: Supabase client for the current request
        bucket: Storage bucket name
        path: Object path inside the bucket
        expires_in: Lifetime in seconds

    Returns:
        str: The signed URL

    Raises:
        StorageError: If signing fails or the response carries no URL
    """
    try:
        data = client.storage.from_(bucket).create_signed_url(path, expires_in)
    except Exception as e:
        logger.error(
            f"[storage] Error generating signed URL for bucket={bucket} path={path}: {e}"
        )
        raise StorageError(
            f"Error generating signed URL for bucket {bucket} and path {path}: {e}"
        ) from e

    signed_url = None
    if data:
        signed_url = data.get("signedUrl") or data.get("signedURL")
    if not signed_url:
        logger.error(
            f"[storage] Signed URL response had no URL for bucket={bucket} path={path}"
        )
        raise StorageError(
            f"Error generating signed URL for bucket {bucket} and path {path}: No data"
        )

    logger.info(f"[storage] Generated signed URL for bucket={bucket} path={path}")
    return signed_url


async def download_file(client: Client, bucket: str, path: str) -> bytes:
    """
    Download an object from Supabase Storage.

    Raises:
        StorageError: If the download fails or returns nothing
    """
    try:
        data = client.storage.from_(bucket).download(path)
    except Exception as e:
        logger.error(f"[storage] Error fetching bucket={bucket} path={path}: {e}")
        raise StorageError(
            f"Error fetching file from storage in bucket {bucket} and path {path}: {e}"
        ) from e

    if not data:
        raise StorageError(
            f"Error fetching file from storage in bucket {bucket} and path {path}: No data"
        )

    logger.info(f"[storage] Downloaded {len(data)} bytes from bucket={bucket} path={path}")
    return data
