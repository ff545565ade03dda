"""
Database operations module for the Supabase try-on tables.
Handles lookups of user images and clothing items, and the per-combination
try-on quota stored in tryon_results.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from postgrest.exceptions import APIError
from supabase import Client

from tryon_studio.config import logger
from tryon_studio.errors import DatabaseError

TRYON_RESULTS_TABLE = "tryon_results"
USER_IMAGES_TABLE = "user_images"
CLOTHING_ITEMS_TABLE = "clothing_items"

# Generations allowed per (user, clothing, user image) combination
TRYON_LIMIT = 3


@dataclass
class QuotaOutcome:
    """Result of insert_or_increment_tryon."""

    image_url: Optional[str]
    tryon_count: int
    limit_exceeded: bool = False


def build_result_path(user_id: str, tryon_result_id: Any) -> str:
    """Storage path of a try-on result, fixed once the row exists."""
    return f"{user_id}/{tryon_result_id}.png"


async def _fetch_single(
    client: Client, table: str, columns: str, **filters: Any
) -> Optional[Dict[str, Any]]:
    query = client.table(table).select(columns)
    for column, value in filters.items():
        query = query.eq(column, value)
    response = query.limit(1).execute()
    if response.data and len(response.data) > 0:
        return response.data[0]
    return None


async def get_user_id_for_image(client: Client, user_image_id: str) -> str:
    """
    Resolve the owner of a user image.

    Raises:
        DatabaseError: If the query fails or the image does not exist
    """
    try:
        row = await _fetch_single(client, USER_IMAGES_TABLE, "user_id", id=user_image_id)
    except APIError as e:
        logger.error(f"[db] Error fetching user_id for user_image_id={user_image_id}: {e}")
        raise DatabaseError(
            f"Error fetching user_id for user_image_id {user_image_id}: {e}"
        ) from e

    if not row:
        logger.error(f"[db] No user_images row for user_image_id={user_image_id}")
        raise DatabaseError(
            f"Error fetching user_id for user_image_id {user_image_id}: No data"
        )

    logger.info(f"[db] Fetched user_id={row['user_id']} for user_image_id={user_image_id}")
    return row["user_id"]


async def fetch_user_image(client: Client, user_image_id: str) -> Dict[str, Optional[str]]:
    """
    Load the storage path and MIME type of a user image.

    Returns:
        Dict with 'image_url' and 'mime_type'

    Raises:
        DatabaseError: If the query fails or the image does not exist
    """
    try:
        row = await _fetch_single(
            client, USER_IMAGES_TABLE, "image_url, mime_type", id=user_image_id
        )
    except APIError as e:
        logger.error(f"[db] Error fetching user image id={user_image_id}: {e}")
        raise DatabaseError(f"Error fetching user image {user_image_id}: {e}") from e

    if not row:
        raise DatabaseError(f"Error fetching user image {user_image_id}: No data")

    logger.info(f"[db] Fetched user image metadata for user_image_id={user_image_id}")
    return {"image_url": row["image_url"], "mime_type": row.get("mime_type")}


async def fetch_clothing_item(client: Client, clothing_id: str) -> Dict[str, str]:
    """
    Load the image URL and title of a clothing item.

    Raises:
        DatabaseError: If the query fails or the item does not exist
    """
    try:
        row = await _fetch_single(
            client, CLOTHING_ITEMS_TABLE, "image_url, title", id=clothing_id
        )
    except APIError as e:
        logger.error(f"[db] Error fetching clothing item id={clothing_id}: {e}")
        raise DatabaseError(
            f"Error fetching clothing image URL for clothing_id {clothing_id}: {e}"
        ) from e

    if not row:
        raise DatabaseError(
            f"Error fetching clothing image URL for clothing_id {clothing_id}: No data"
        )

    logger.info(f"[db] Fetched clothing image URL for clothing_id={clothing_id}")
    return {"image_url": row["image_url"], "title": row["title"]}


async def insert_or_increment_tryon(
    client: Client,
    user_id: str,
    clothing_id: str,
    user_image_id: str,
) -> QuotaOutcome:
    """
    Record one try-on generation for a (user, clothing, user image) combination.

    A new combination gets a row with tryon_count=1 and a storage path derived
    from the row id. An existing combination is incremented and keeps its
    path, unless its count is exactly TRYON_LIMIT, in which case nothing is
    written and the outcome is marked limit_exceeded.

    The insert-else-increment sequence is not atomic. Concurrent requests for
    the same combination may both increment.

    Raises:
        DatabaseError: If the follow-up read or any update fails
    """
    # 1) Try to create the row
    try:
        response = (
            client.table(TRYON_RESULTS_TABLE)
            .insert(
                {
                    "user_id": user_id,
                    "clothing_id": clothing_id,
                    "user_image_id": user_image_id,
                    "tryon_count": 1,
                }
            )
            .execute()
        )
        inserted = response.data[0] if response.data else None
    except APIError as e:
        logger.info(
            "[db] Insert failed (likely conflict), attempting manual increment",
            extra={
                "user_id": user_id,
                "clothing_id": clothing_id,
                "user_image_id": user_image_id,
                "error": str(e),
            },
        )
        inserted = None

    if inserted:
        tryon_result_id = inserted["id"]
        image_url = build_result_path(user_id, tryon_result_id)
        try:
            (
                client.table(TRYON_RESULTS_TABLE)
                .update({"image_url": image_url})
                .eq("id", tryon_result_id)
                .execute()
            )
        except APIError as e:
            logger.error(
                f"[db] Error updating image_url for tryon_result_id={tryon_result_id}: {e}"
            )
            raise DatabaseError(
                f"Error updating image_url for tryon_result_id {tryon_result_id}: {e}"
            ) from e

        logger.info(
            f"[db] Inserted tryon_result id={tryon_result_id} and set image_url={image_url}"
        )
        return QuotaOutcome(image_url=image_url, tryon_count=1)

    # 2) Read the existing row for this combination
    try:
        existing = await _fetch_single(
            client,
            TRYON_RESULTS_TABLE,
            "id, image_url, tryon_count",
            user_id=user_id,
            clothing_id=clothing_id,
            user_image_id=user_image_id,
        )
    except APIError as e:
        logger.error(f"[db] Failed to fetch existing tryon_result for increment: {e}")
        raise DatabaseError(
            f"Error fetching existing tryon_result for increment: {e}"
        ) from e

    if not existing:
        logger.error(
            f"[db] No existing tryon_result for user_id={user_id}, "
            f"clothing_id={clothing_id}, user_image_id={user_image_id}"
        )
        raise DatabaseError("Error fetching existing tryon_result for increment: No data")

    # Exact equality: a count pushed past the limit elsewhere is not caught here
    if existing.get("tryon_count") == TRYON_LIMIT:
        logger.info(
            f"[db] Tryon count limit exceeded for tryon_result id={existing['id']}"
        )
        return QuotaOutcome(
            image_url=None, tryon_count=TRYON_LIMIT, limit_exceeded=True
        )

    new_count = (existing.get("tryon_count") or 1) + 1
    try:
        (
            client.table(TRYON_RESULTS_TABLE)
            .update({"tryon_count": new_count})
            .eq("id", existing["id"])
            .execute()
        )
    except APIError as e:
        logger.error(
            f"[db] Error incrementing tryon_count for tryon_result_id={existing['id']} "
            f"to {new_count}: {e}"
        )
        raise DatabaseError(f"Error incrementing tryon_count: {e}") from e

    logger.info(
        f"[db] Incremented tryon_result id={existing['id']} to tryon_count={new_count}, "
        f"returning image_url={existing['image_url']}"
    )
    return QuotaOutcome(image_url=existing["image_url"], tryon_count=new_count)
