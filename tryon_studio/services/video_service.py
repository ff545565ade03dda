"""Polling of long-running Gemini video jobs."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from tryon_studio.config import Settings, logger
from tryon_studio.core.gemini import GeminiClient
from tryon_studio.errors import GenerationError, VideoPollCancelled, VideoPollTimeout


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


@dataclass(slots=True)
class PollPolicy:
    """Bounds for one video job's polling."""

    interval_seconds: float = 10.0
    max_attempts: int = 60
    deadline_seconds: float = 900.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollPolicy":
        return cls(
            interval_seconds=settings.video_poll_interval_seconds,
            max_attempts=settings.video_poll_max_attempts,
            deadline_seconds=settings.video_poll_deadline_seconds,
        )


async def poll_video_operation(
    gemini: GeminiClient,
    operation: Dict[str, Any],
    policy: PollPolicy,
    is_cancelled: Optional[Callable[[], Awaitable[bool]]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Dict[str, Any]:
    """
    Wait for a video operation to report done.

    Sleeps a fixed interval before every re-fetch, so an operation that is
    already done returns without waiting. A failed poll is logged and retried
    on the same operation handle; it still counts as an attempt.

    Args:
        gemini: Client used to re-fetch the operation
        operation: Operation returned by the submission call
        policy: Interval, attempt cap and wall-clock deadline
        is_cancelled: Async predicate checked before each wait, typically
            Request.is_disconnected

    Returns:
        Dict: The finished operation

    Raises:
        VideoPollCancelled: If is_cancelled reports True
        VideoPollTimeout: If max_attempts or the deadline is exhausted
    """
    name = operation.get("name")
    started = clock()
    attempt = 0

    while not operation.get("done"):
        if is_cancelled is not None and await is_cancelled():
            _log(logging.WARNING, "[ai:video] poll_cancelled", operation=name, attempt=attempt)
            raise VideoPollCancelled("Video generation cancelled: client disconnected")

        if attempt >= policy.max_attempts:
            _log(logging.ERROR, "[ai:video] poll_attempts_exhausted", operation=name, attempt=attempt)
            raise VideoPollTimeout(
                f"Video generation did not finish after {attempt} poll attempts"
            )
        if clock() - started >= policy.deadline_seconds:
            _log(logging.ERROR, "[ai:video] poll_deadline_reached", operation=name, attempt=attempt)
            raise VideoPollTimeout(
                f"Video generation did not finish within {policy.deadline_seconds:g} seconds"
            )

        attempt += 1
        _log(logging.INFO, "[ai:video] operation_in_progress", operation=name, attempt=attempt)
        await sleep(policy.interval_seconds)

        try:
            operation = await gemini.get_operation(name)
            _log(
                logging.INFO,
                "[ai:video] poll_succeeded",
                operation=name,
                attempt=attempt,
                done=bool(operation.get("done")),
            )
        except (GenerationError, httpx.HTTPError) as exc:
            _log(
                logging.ERROR,
                "[ai:video] poll_failed",
                operation=name,
                attempt=attempt,
                error=str(exc),
            )

    if operation.get("error"):
        raise GenerationError(
            f"Video generation failed: {operation['error'].get('message', operation['error'])}"
        )

    _log(logging.INFO, "[ai:video] generation_complete", operation=name, polls=attempt)
    return operation


def extract_video_uri(operation: Dict[str, Any]) -> Optional[str]:
    """First generated sample's video URI, or None when the response lacks one."""
    try:
        samples = operation["response"]["generateVideoResponse"]["generatedSamples"]
        return samples[0]["video"]["uri"]
    except (KeyError, IndexError, TypeError) as exc:
        _log(
            logging.WARNING,
            "[ai:video] video_uri_missing",
            operation=operation.get("name"),
            error=repr(exc),
        )
        return None


def build_video_download_url(uri: str, api_key: str) -> str:
    """Attach the API key the file endpoint requires."""
    return str(httpx.URL(uri).copy_merge_params({"key": api_key}))
