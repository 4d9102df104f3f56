"""KIE.ai client for VEO3 video generation and Nano Banana image editing.

This module wraps the two hosted generation APIs used by the video pipeline:
- VEO3 (POST /veo/generate, GET /veo/record-info): text-to-video, or
  image-to-video when reference image URLs are supplied
- Nano Banana (POST /playground/createTask, GET /playground/recordInfo):
  reference-image editing

Both APIs are asynchronous: submission returns a taskId that must be polled
until the task succeeds or fails.

Retry Strategy:
    - Submission: retried with tenacity on 429/5xx, timeouts and connection
      errors (3 attempts, exponential backoff 2s-10s)
    - Polling: fixed interval with a hard attempt ceiling, no backoff
    - API-level errors (body code != 200) are never retried

Usage:
    client = KieClient(api_key)
    task_id = await client.generate_video("Ana presents the matchday")
    url = await client.wait_for_video(task_id, interval=10, max_attempts=30)
    await client.download(url, Path("output/veo3/ana.mp4"))
"""

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from fantasy_ops.exceptions import (
    ExternalServiceError,
    GenerationFailedError,
    GenerationTimeoutError,
)
from fantasy_ops.utils.logging import get_logger

log = get_logger(__name__)

KIE_BASE_URL = "https://api.kie.ai/api/v1"
NANO_BANANA_EDIT_MODEL = "google/nano-banana-edit"

STATE_PROCESSING = "processing"
STATE_SUCCESS = "success"
STATE_FAILED = "failed"


def _is_retriable_error(exception: BaseException) -> bool:
    """Determine if a submission error should trigger a retry (429, 5xx, network)."""
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in [429, 500, 502, 503, 504]
    return isinstance(exception, (httpx.TimeoutException, httpx.ConnectError))


@dataclass
class TaskStatus:
    """Normalized status of a KIE.ai generation task.

    Attributes:
        state: "processing", "success" or "failed"
        result_urls: Result URLs (non-empty only on success)
        error_message: Failure reason reported by the API
        raw: The `data` object as returned by the API
    """

    state: str
    result_urls: list[str] = field(default_factory=list)
    error_message: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def is_done(self) -> bool:
        return self.state in (STATE_SUCCESS, STATE_FAILED)


def parse_video_status(data: dict[str, Any]) -> TaskStatus:
    """Map a VEO3 record-info `data` object to TaskStatus.

    successFlag: 0 = processing, 1 = success, 2 or more = failed.
    """
    flag = data.get("successFlag")
    if flag == 1:
        urls = (data.get("response") or {}).get("resultUrls") or []
        return TaskStatus(STATE_SUCCESS, list(urls), raw=data)
    if isinstance(flag, int) and flag >= 2:
        message = data.get("errorMessage") or "Unknown generation error"
        return TaskStatus(STATE_FAILED, error_message=message, raw=data)
    return TaskStatus(STATE_PROCESSING, raw=data)


def parse_image_status(data: dict[str, Any]) -> TaskStatus:
    """Map a Nano Banana recordInfo `data` object to TaskStatus.

    `state` is "success", "fail"/"failed", or a pending value ("waiting",
    "queuing", "generating"). On success `resultJson` is a JSON *string*
    holding `resultUrls`.
    """
    state = data.get("state")
    if state == "success":
        result = json.loads(data.get("resultJson") or "{}")
        return TaskStatus(STATE_SUCCESS, list(result.get("resultUrls") or []), raw=data)
    if state in ("fail", "failed"):
        message = data.get("failMsg") or "Image generation failed on server"
        return TaskStatus(STATE_FAILED, error_message=message, raw=data)
    return TaskStatus(STATE_PROCESSING, raw=data)


class KieClient:
    """Async client for the KIE.ai VEO3 and Nano Banana APIs.

    Attributes:
        base_url: API root (default: https://api.kie.ai/api/v1)
        client: Async HTTP client (auth is sent per request, never to result hosts)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = KIE_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=30.0, transport=transport)

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @retry(
        retry=retry_if_exception(_is_retriable_error),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _submit(self, path: str, payload: dict[str, Any]) -> str:
        """POST a generation task and return its taskId.

        Raises:
            httpx.HTTPStatusError: On HTTP error (after retries for 429/5xx)
            ExternalServiceError: If the body reports code != 200 or has no taskId
        """
        response = await self.client.post(
            f"{self.base_url}{path}",
            headers=self._get_headers(),
            json=payload,
        )
        response.raise_for_status()
        body = response.json()

        if body.get("code") != 200:
            raise ExternalServiceError(
                "kie", body.get("msg") or "Task submission rejected", body.get("code"), response.text
            )
        task_id = (body.get("data") or {}).get("taskId")
        if not task_id:
            raise ExternalServiceError("kie", "No taskId in response", body.get("code"), response.text)

        log.info("kie_task_submitted", path=path, task_id=task_id)
        return task_id

    async def _get_record(self, path: str, task_id: str) -> dict[str, Any]:
        response = await self.client.get(
            f"{self.base_url}{path}",
            headers=self._get_headers(),
            params={"taskId": task_id},
        )
        response.raise_for_status()
        body = response.json()
        if body.get("code") not in (None, 200):
            raise ExternalServiceError("kie", body.get("msg") or "Status query rejected", body.get("code"), response.text)
        return body.get("data") or {}

    async def generate_video(
        self,
        prompt: str,
        image_urls: list[str] | None = None,
        model: str = "veo3_fast",
        aspect_ratio: str = "9:16",
        seed: int | None = None,
        watermark: str | None = None,
    ) -> str:
        """Submit a VEO3 generation task.

        Omitting image_urls produces a pure text-to-video request.

        Args:
            prompt: Scene description, including any dialogue
            image_urls: Public reference image URLs (image-to-video)
            model: "veo3_fast" or "veo3"
            aspect_ratio: "9:16" or "16:9"
            seed: Fixed seed for character consistency
            watermark: Watermark text

        Returns:
            KIE.ai taskId

        Raises:
            ExternalServiceError: If the API rejects the request
            httpx.HTTPStatusError: On HTTP errors after retries
        """
        payload: dict[str, Any] = {
            "prompt": prompt,
            "model": model,
            "aspectRatio": aspect_ratio,
        }
        if image_urls:
            payload["imageUrls"] = image_urls
        if seed is not None:
            payload["seed"] = seed
        if watermark:
            payload["waterMark"] = watermark

        return await self._submit("/veo/generate", payload)

    async def get_video_status(self, task_id: str) -> TaskStatus:
        """Get the status of a VEO3 task."""
        return parse_video_status(await self._get_record("/veo/record-info", task_id))

    async def create_image_task(
        self,
        prompt: str,
        image_urls: list[str],
        model: str = NANO_BANANA_EDIT_MODEL,
        image_size: str = "9:16",
        seed: int | None = None,
        negative_prompt: str | None = None,
        output_format: str = "png",
        prompt_strength: float | None = None,
    ) -> str:
        """Submit a Nano Banana image editing task.

        Raises:
            ValueError: If no reference image URL is given
            ExternalServiceError: If the API rejects the request
        """
        if not image_urls:
            raise ValueError("At least one reference image URL is required")

        task_input: dict[str, Any] = {
            "prompt": prompt,
            "image_urls": image_urls,
            "output_format": output_format,
            "image_size": image_size,
            "n": 1,
        }
        if negative_prompt:
            task_input["negative_prompt"] = negative_prompt
        if seed is not None:
            task_input["seed"] = seed
        if prompt_strength is not None:
            task_input["prompt_strength"] = prompt_strength

        return await self._submit("/playground/createTask", {"model": model, "input": task_input})

    async def get_image_status(self, task_id: str) -> TaskStatus:
        """Get the status of a Nano Banana task."""
        return parse_image_status(await self._get_record("/playground/recordInfo", task_id))

    async def _wait(self, task_id: str, check, interval: float, max_attempts: int) -> str:
        for attempt in range(1, max_attempts + 1):
            status = await check(task_id)
            log.info("kie_task_poll", task_id=task_id, attempt=attempt, state=status.state)

            if status.state == STATE_SUCCESS:
                if not status.result_urls:
                    raise GenerationFailedError(task_id, "Task succeeded without result URLs")
                return status.result_urls[0]
            if status.state == STATE_FAILED:
                raise GenerationFailedError(task_id, status.error_message or "unknown error")

            if attempt < max_attempts:
                await asyncio.sleep(interval)

        raise GenerationTimeoutError(task_id, max_attempts)

    async def wait_for_video(self, task_id: str, interval: float = 10, max_attempts: int = 30) -> str:
        """Poll a VEO3 task until it finishes.

        Returns:
            First result video URL

        Raises:
            GenerationFailedError: If the task reports failure
            GenerationTimeoutError: If max_attempts checks pass without completion
        """
        return await self._wait(task_id, self.get_video_status, interval, max_attempts)

    async def wait_for_image(self, task_id: str, interval: float = 3, max_attempts: int = 60) -> str:
        """Poll a Nano Banana task until it finishes (see wait_for_video)."""
        return await self._wait(task_id, self.get_image_status, interval, max_attempts)

    async def download(self, url: str, output_path: Path) -> Path:
        """Stream a result file to disk, creating parent directories.

        Raises:
            httpx.HTTPStatusError: If the download fails
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        async with self.client.stream("GET", url, timeout=120.0) as response:
            response.raise_for_status()
            with open(output_path, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)

        log.info("kie_download_complete", url=url, path=str(output_path), size=output_path.stat().st_size)
        return output_path

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
