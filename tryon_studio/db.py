from typing import Optional

from supabase import Client, ClientOptions, create_client

from tryon_studio.config import Settings, logger
from tryon_studio.errors import ConfigurationError


def supabase_create_client(
    settings: Settings, authorization: Optional[str] = None
) -> Client:
    """
    Creates a Supabase client for one request.

    The caller's Authorization header, when present, is forwarded as a global
    header so row and object level policies apply to the caller.

    Returns:
        Client: Supabase client instance

    Raises:
        ConfigurationError: if the client cannot be built from the settings
    """
    global_headers = {}
    if authorization:
        global_headers["Authorization"] = authorization
    logger.info(f"[init] Authorization header present={bool(authorization)}")

    try:
        supabase: Client = create_client(
            settings.supabase_url,
            settings.supabase_service_key,
            options=ClientOptions(headers=global_headers),
        )
    except Exception as e:
        logger.error(f"[init] Failed to create Supabase client: {e}")
        raise ConfigurationError(f"Failed to create Supabase client: {e}") from e
    logger.info("[init] Supabase client initialized")
    return supabase
