import base64
import binascii
from typing import Any, Dict, List

import httpx

from tryon_studio.config import logger
from tryon_studio.errors import GenerationError
from tryon_studio.core.media import InlineData

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient:
    """
    Thin async wrapper over the Gemini REST API.

    Image generation goes through generateContent. Video generation goes
    through predictLongRunning and returns an operation that callers poll
    with get_operation.
    """

    def __init__(
        self,
        api_key: str,
        http: httpx.AsyncClient,
        image_model: str = "gemini-2.5-flash-image-preview",
        video_model: str = "veo-3.1-generate-preview",
        base_url: str = GEMINI_BASE_URL,
    ):
        self.api_key = api_key
        self.http = http
        self.image_model = image_model
        self.video_model = video_model
        self.base_url = base_url.rstrip("/")

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

    async def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self.http.post(url, json=payload, headers=self._headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Gemini API HTTP error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise GenerationError(f"Network error calling Gemini API: {e}") from e

    async def generate_image(self, prompt: str, images: List[InlineData]) -> bytes:
        """
        Run one generateContent call and return the first generated image.

        Args:
            prompt: Instruction text, sent before the images
            images: Input images in the order the prompt refers to them

        Returns:
            bytes: Decoded image bytes

        Raises:
            GenerationError: If the call fails or the response has no image
        """
        parts: List[Dict[str, Any]] = [{"text": prompt}]
        parts.extend(image.as_part() for image in images)

        url = f"{self.base_url}/models/{self.image_model}:generateContent"
        api_result = await self._post(url, {"contents": [{"parts": parts}]})
        logger.info("[ai] Gemini generateContent request succeeded")

        return extract_image_bytes(api_result)

    async def start_video_generation(self, prompt: str, image: InlineData) -> Dict[str, Any]:
        """
        Submit an image-to-video job.

        Returns:
            Dict: The long-running operation, with at least a 'name'

        Raises:
            GenerationError: If submission fails or no operation name comes back
        """
        url = f"{self.base_url}/models/{self.video_model}:predictLongRunning"
        payload = {"instances": [{"prompt": prompt, "image": image.as_video_image()}]}
        operation = await self._post(url, payload)
        if not operation.get("name"):
            raise GenerationError("Gemini video request returned no operation name")
        logger.info(f"[ai:video] Submitted video job operation={operation['name']}")
        return operation

    async def get_operation(self, name: str) -> Dict[str, Any]:
        """Fetch the current state of a long-running operation."""
        try:
            response = await self.http.get(
                f"{self.base_url}/{name}", headers={"x-goog-api-key": self.api_key}
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Gemini operation poll HTTP error: {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise GenerationError(f"Network error polling Gemini operation: {e}") from e

    async def download(self, url: str) -> bytes:
        """Download a generated file. Raises httpx errors on failure."""
        response = await self.http.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content


def extract_image_bytes(api_result: Dict[str, Any]) -> bytes:
    """
    Return the first inline image of the first candidate, decoded.

    Raises:
        GenerationError: If no inline image part exists or it decodes to nothing
    """
    candidates = api_result.get("candidates") or []
    parts = []
    if candidates:
        parts = (candidates[0].get("content") or {}).get("parts") or []

    for part in parts:
        # Check both camelCase and snake_case formats
        inline = part.get("inlineData") or part.get("inline_data")
        if not inline:
            continue
        try:
            image_bytes = base64.b64decode(inline.get("data") or "")
        except (binascii.Error, ValueError) as e:
            raise GenerationError(f"Gemini returned undecodable image data: {e}") from e
        if not image_bytes:
            logger.error("[ai] Empty image data returned from Gemini response")
            raise GenerationError("No image data found in Gemini response")
        logger.info(f"[ai] Received generated image bytes, length={len(image_bytes)}")
        return image_bytes

    logger.error("[ai] No inlineData parts found in Gemini response")
    raise GenerationError("No image generated by Gemini API")
