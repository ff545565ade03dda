"""Pipelines behind the try-on endpoints."""

import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

import httpx
from pydantic import BaseModel
from supabase import Client

from tryon_studio.config import logger
from tryon_studio.core import database_ops, storage_ops
from tryon_studio.core.gemini import GeminiClient
from tryon_studio.core.media import InlineData, fetch_image_inline_data, resolve_mime_type
from tryon_studio.core.prompt_templates import (
    VIDEO_PROMPT,
    build_combination_prompt,
    build_personal_tryon_prompt,
)
from tryon_studio.errors import (
    DatabaseError,
    GenerationError,
    RequestBodyError,
    StorageError,
)
from tryon_studio.models import CombinationRequest, PersonalTryonRequest, VideoRequest
from tryon_studio.services.video_service import (
    PollPolicy,
    build_video_download_url,
    extract_video_uri,
    poll_video_operation,
)

# Fetched inputs are labelled PNG whatever the host reports
INPUT_MIME_TYPE = "image/png"


@dataclass
class PersonalTryonResult:
    signed_url: Optional[str]
    limit_exceeded: bool = False


def require_fields(payload: BaseModel, fields: Sequence[str], message: str) -> None:
    """Raise RequestBodyError unless every field is present and non-empty."""
    if any(not getattr(payload, field) for field in fields):
        logger.error(f"[validate] {message}")
        raise RequestBodyError(message)
    logger.info(
        "[validate] Received body params",
        extra={field: getattr(payload, field) for field in fields},
    )


async def generate_combination(
    payload: CombinationRequest,
    supabase: Client,
    http: httpx.AsyncClient,
    gemini: GeminiClient,
) -> str:
    """Dress the person in image 1 with the garment in image 2 and return a signed URL."""
    require_fields(
        payload,
        ("image1_url", "image1_title", "image2_url", "image2_title"),
        "Missing image1_url, image1_title, image2_url, or image2_title in request body",
    )

    image1 = await fetch_image_inline_data(http, payload.image1_url, INPUT_MIME_TYPE)
    logger.info("[flow] Fetched & converted image1 to inline data")
    image2 = await fetch_image_inline_data(http, payload.image2_url, INPUT_MIME_TYPE)
    logger.info("[flow] Fetched & converted image2 to inline data")

    prompt = build_combination_prompt(payload.image1_title, payload.image2_title)
    image_bytes = await gemini.generate_image(prompt, [image1, image2])

    path = f"{payload.image1_title}_{payload.image2_title}"
    await storage_ops.upload_file(
        supabase, storage_ops.COMBINATION_BUCKET, path, image_bytes
    )
    signed_url = await storage_ops.create_signed_url(
        supabase,
        storage_ops.COMBINATION_BUCKET,
        path,
        storage_ops.IMAGE_URL_TTL_SECONDS,
    )
    logger.info(f"[done] Signed URL generated for path={path}")
    return signed_url


async def generate_video(
    payload: VideoRequest,
    supabase: Client,
    http: httpx.AsyncClient,
    gemini: GeminiClient,
    policy: PollPolicy,
    is_cancelled: Optional[Callable[[], Awaitable[bool]]] = None,
) -> str:
    """Animate a try-on image into a short video, re-host it and return a signed URL."""
    require_fields(payload, ("signed_url",), "Missing signed_url in request body")

    image = await fetch_image_inline_data(http, payload.signed_url, INPUT_MIME_TYPE)

    operation = await gemini.start_video_generation(VIDEO_PROMPT, image)
    operation = await poll_video_operation(
        gemini, operation, policy, is_cancelled=is_cancelled
    )

    video_uri = extract_video_uri(operation)
    if not video_uri:
        raise GenerationError("No video generated by Gemini API")

    try:
        video_bytes = await gemini.download(
            build_video_download_url(video_uri, gemini.api_key)
        )
    except httpx.HTTPError as exc:
        logger.error(f"[ai:video] Failed to fetch generated video: {exc}")
        raise GenerationError("Failed to fetch video") from exc

    file_name = f"video-{uuid.uuid4()}.mp4"
    try:
        await storage_ops.upload_file(
            supabase, storage_ops.VIDEOS_BUCKET, file_name, video_bytes, "video/mp4"
        )
    except StorageError as exc:
        raise StorageError("Upload failed") from exc

    try:
        signed_url = await storage_ops.create_signed_url(
            supabase,
            storage_ops.VIDEOS_BUCKET,
            file_name,
            storage_ops.VIDEO_URL_TTL_SECONDS,
        )
    except StorageError as exc:
        raise StorageError("Signed URL generation failed") from exc

    logger.info(f"[done] Video stored at {file_name}")
    return signed_url


async def generate_personal_tryon(
    payload: PersonalTryonRequest,
    supabase: Client,
    http: httpx.AsyncClient,
    gemini: GeminiClient,
) -> PersonalTryonResult:
    """
    Dress a stored user image in a catalogue garment, counting against the
    combination's quota.
    """
    require_fields(
        payload,
        ("clothing_id", "user_image_id", "referer_url"),
        "Missing clothing_id, user_image_id, or referer_url in request body",
    )

    user_id = await database_ops.get_user_id_for_image(supabase, payload.user_image_id)
    logger.info(f"[flow] Resolved user_id={user_id} for processing")

    quota = await database_ops.insert_or_increment_tryon(
        supabase, user_id, payload.clothing_id, payload.user_image_id
    )
    if quota.limit_exceeded:
        return PersonalTryonResult(signed_url=None, limit_exceeded=True)
    # A concurrent first insert may not have written its path yet
    if not quota.image_url:
        logger.error("[db] tryon_result has no image_url yet")
        raise DatabaseError("tryon_result has no image_url yet")

    user_image = await database_ops.fetch_user_image(supabase, payload.user_image_id)
    user_bytes = await storage_ops.download_file(
        supabase, storage_ops.USER_UPLOADS_BUCKET, user_image["image_url"]
    )
    user_inline = InlineData.from_bytes(
        user_bytes,
        resolve_mime_type(user_image["image_url"], explicit=user_image["mime_type"]),
    )

    clothing = await database_ops.fetch_clothing_item(supabase, payload.clothing_id)
    clothing_inline = await fetch_image_inline_data(
        http, clothing["image_url"], referer=payload.referer_url
    )

    prompt = build_personal_tryon_prompt(clothing["title"])
    image_bytes = await gemini.generate_image(prompt, [user_inline, clothing_inline])

    await storage_ops.upload_file(
        supabase, storage_ops.TRYON_RESULTS_BUCKET, quota.image_url, image_bytes
    )
    signed_url = await storage_ops.create_signed_url(
        supabase,
        storage_ops.TRYON_RESULTS_BUCKET,
        quota.image_url,
        storage_ops.IMAGE_URL_TTL_SECONDS,
    )
    logger.info(f"[done] Try-on result stored at {quota.image_url}")
    return PersonalTryonResult(signed_url=signed_url)
