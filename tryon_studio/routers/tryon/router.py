"""FastAPI router for the try-on endpoints."""

import httpx
from fastapi import APIRouter, Depends, Request
from supabase import Client

from tryon_studio.config import Settings, get_settings, logger
from tryon_studio.core.gemini import GeminiClient
from tryon_studio.errors import TryOnError
from tryon_studio.models import (
    CombinationRequest,
    ErrorResponse,
    LimitExceededResponse,
    PersonalTryonRequest,
    SignedUrlResponse,
    VideoRequest,
)
from tryon_studio.services.video_service import PollPolicy

from .dependencies import get_gemini, get_http_client, get_supabase
from .services import generate_combination, generate_personal_tryon, generate_video
from .utils import json_response, preflight_response

router = APIRouter(
    tags=["Virtual Try-On"],
    responses={500: {"model": ErrorResponse}},
)


@router.options("/tryon-combination")
@router.options("/tryon-video")
@router.options("/tryon")
async def cors_preflight():
    """CORS preflight for clients that do not send Origin headers."""
    logger.info("[http] CORS preflight handled")
    return preflight_response()


@router.post("/tryon-combination", response_model=SignedUrlResponse)
async def create_tryon_combination(
    payload: CombinationRequest,
    supabase: Client = Depends(get_supabase),
    http: httpx.AsyncClient = Depends(get_http_client),
    gemini: GeminiClient = Depends(get_gemini),
):
    """Composite the garment from image 2 onto the person in image 1."""

    logger.info("[init] Starting try-on combination request")
    try:
        signed_url = await generate_combination(payload, supabase, http, gemini)
    except TryOnError:
        raise
    except Exception as exc:
        logger.error("[error] Unexpected error in try-on combination", exc_info=True)
        raise TryOnError(str(exc) or "Unexpected error") from exc

    return json_response({"signedUrl": signed_url})


@router.post("/tryon-video", response_model=SignedUrlResponse)
async def create_tryon_video(
    payload: VideoRequest,
    request: Request,
    supabase: Client = Depends(get_supabase),
    http: httpx.AsyncClient = Depends(get_http_client),
    gemini: GeminiClient = Depends(get_gemini),
    settings: Settings = Depends(get_settings),
):
    """Animate a try-on image into a short clip."""

    logger.info("[init] Starting try-on video request")
    try:
        signed_url = await generate_video(
            payload,
            supabase,
            http,
            gemini,
            PollPolicy.from_settings(settings),
            is_cancelled=request.is_disconnected,
        )
    except TryOnError:
        raise
    except Exception as exc:
        logger.error("[error] Unexpected error in try-on video", exc_info=True)
        raise TryOnError(str(exc) or "Unexpected error") from exc

    return json_response({"signedUrl": signed_url})


@router.post(
    "/tryon",
    response_model=SignedUrlResponse,
    responses={429: {"model": LimitExceededResponse}},
)
async def create_personal_tryon(
    payload: PersonalTryonRequest,
    supabase: Client = Depends(get_supabase),
    http: httpx.AsyncClient = Depends(get_http_client),
    gemini: GeminiClient = Depends(get_gemini),
):
    """Try a catalogue garment on a stored user image, within the per-combination quota."""

    logger.info("[init] Starting personal try-on request")
    try:
        result = await generate_personal_tryon(payload, supabase, http, gemini)
    except TryOnError:
        raise
    except Exception as exc:
        logger.error("[error] Unexpected error in personal try-on", exc_info=True)
        raise TryOnError(str(exc) or "Unexpected error") from exc

    if result.limit_exceeded:
        return json_response({"limitExceeded": True}, status_code=429)
    return json_response({"signedUrl": result.signed_url})


@router.get("/health")
async def health_check() -> dict:
    """Simple health check endpoint."""

    return {
        "status": "healthy",
        "service": "tryon-studio-api",
        "version": "1.0.0",
    }
