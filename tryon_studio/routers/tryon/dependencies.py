"""FastAPI dependencies shared across try-on endpoints."""

from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends, Header
from supabase import Client

from tryon_studio.config import Settings, get_settings
from tryon_studio.core.gemini import GeminiClient
from tryon_studio.db import supabase_create_client


def get_supabase(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Client:
    """Supabase client scoped to the caller's Authorization header."""
    return supabase_create_client(settings, authorization)


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        yield client


def get_gemini(
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> GeminiClient:
    return GeminiClient(
        api_key=settings.gemini_api_key,
        http=http,
        image_model=settings.image_model,
        video_model=settings.video_model,
    )
