"""Tests for KieClient (VEO3 + Nano Banana).

Test Coverage:
- Status parsing for both APIs
- Task submission payloads and error handling
- Retry on transient submission errors
- Fixed-interval polling with attempt ceiling
- Result download
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from tenacity import wait_none

from fantasy_ops.clients.kie import (
    STATE_FAILED,
    STATE_PROCESSING,
    STATE_SUCCESS,
    KieClient,
    _is_retriable_error,
    parse_image_status,
    parse_video_status,
)
from fantasy_ops.exceptions import (
    ExternalServiceError,
    GenerationFailedError,
    GenerationTimeoutError,
)


def make_client(handler) -> KieClient:
    return KieClient("kie-key", transport=httpx.MockTransport(handler))


def submitted(task_id: str = "task-123") -> httpx.Response:
    return httpx.Response(200, json={"code": 200, "msg": "success", "data": {"taskId": task_id}})


@pytest.fixture
def no_retry_wait(monkeypatch: pytest.MonkeyPatch):
    """Remove the exponential backoff between submission retries."""
    monkeypatch.setattr(KieClient._submit.retry, "wait", wait_none())


class TestStatusParsing:
    """Tests for parse_video_status and parse_image_status."""

    def test_p1_video_success_flag(self):
        status = parse_video_status({"successFlag": 1, "response": {"resultUrls": ["https://cdn/v.mp4"]}})

        assert status.state == STATE_SUCCESS
        assert status.result_urls == ["https://cdn/v.mp4"]
        assert status.is_done

    @pytest.mark.parametrize("flag", [2, 3])
    def test_p1_video_failure_flags(self, flag):
        status = parse_video_status({"successFlag": flag, "errorMessage": "Content policy"})

        assert status.state == STATE_FAILED
        assert status.error_message == "Content policy"

    def test_p2_video_processing(self):
        status = parse_video_status({"successFlag": 0})

        assert status.state == STATE_PROCESSING
        assert not status.is_done

    def test_p1_image_success_parses_result_json_string(self):
        status = parse_image_status({"state": "success", "resultJson": '{"resultUrls": ["https://cdn/i.png"]}'})

        assert status.state == STATE_SUCCESS
        assert status.result_urls == ["https://cdn/i.png"]

    @pytest.mark.parametrize("state", ["fail", "failed"])
    def test_p1_image_failure(self, state):
        status = parse_image_status({"state": state, "failMsg": "bad input"})

        assert status.state == STATE_FAILED
        assert status.error_message == "bad input"

    @pytest.mark.parametrize("state", ["waiting", "queuing", "generating", None])
    def test_p2_image_pending_states(self, state):
        assert parse_image_status({"state": state}).state == STATE_PROCESSING


class TestIsRetriableError:
    """Tests for _is_retriable_error."""

    @pytest.mark.parametrize("status_code,expected", [(429, True), (503, True), (400, False), (401, False)])
    def test_p1_http_status(self, status_code, expected):
        request = httpx.Request("POST", "https://api.kie.ai/api/v1/veo/generate")
        error = httpx.HTTPStatusError("error", request=request, response=httpx.Response(status_code, request=request))

        assert _is_retriable_error(error) is expected

    def test_p1_network_errors(self):
        assert _is_retriable_error(httpx.ConnectError("refused")) is True
        assert _is_retriable_error(httpx.ReadTimeout("timeout")) is True
        assert _is_retriable_error(ValueError("x")) is False


class TestSubmission:
    """Tests for generate_video and create_image_task."""

    @pytest.mark.asyncio
    async def test_p1_generate_video_payload(self):
        """[P1] Should POST prompt, model, aspect ratio, seed and watermark."""
        # GIVEN: A transport recording the request
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return submitted()

        client = make_client(handler)

        # WHEN: Submitting an image-to-video task
        task_id = await client.generate_video(
            "Ana presents", image_urls=["https://ref/ana.png"], seed=30001, watermark="Fantasy La Liga Pro"
        )
        await client.close()

        # THEN: taskId is returned and payload uses API field names
        assert task_id == "task-123"
        assert seen["request"].url.path == "/api/v1/veo/generate"
        assert seen["request"].headers["Authorization"] == "Bearer kie-key"
        assert json.loads(seen["request"].content) == {
            "prompt": "Ana presents",
            "model": "veo3_fast",
            "aspectRatio": "9:16",
            "imageUrls": ["https://ref/ana.png"],
            "seed": 30001,
            "waterMark": "Fantasy La Liga Pro",
        }

    @pytest.mark.asyncio
    async def test_p1_text_to_video_omits_images(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return submitted()

        client = make_client(handler)
        await client.generate_video("A stadium at night")
        await client.close()

        assert "imageUrls" not in bodies[0]
        assert "seed" not in bodies[0]

    @pytest.mark.asyncio
    async def test_p1_api_error_code_raises(self):
        """[P1] Should raise ExternalServiceError when code != 200."""
        client = make_client(lambda request: httpx.Response(200, json={"code": 402, "msg": "Insufficient credits"}))

        with pytest.raises(ExternalServiceError, match="Insufficient credits") as exc_info:
            await client.generate_video("x")
        await client.close()

        assert exc_info.value.status_code == 402

    @pytest.mark.asyncio
    async def test_p2_missing_task_id_raises(self):
        client = make_client(lambda request: httpx.Response(200, json={"code": 200, "data": {}}))

        with pytest.raises(ExternalServiceError, match="No taskId"):
            await client.generate_video("x")
        await client.close()

    @pytest.mark.asyncio
    async def test_p1_retries_transient_errors(self, no_retry_wait):
        """[P1] Should retry 503 and succeed on the third attempt."""
        responses = [httpx.Response(503), httpx.Response(503), submitted("task-ok")]
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return responses[len(calls) - 1]

        client = make_client(handler)
        task_id = await client.generate_video("x")
        await client.close()

        assert task_id == "task-ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_p1_does_not_retry_client_errors(self, no_retry_wait):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, json={"msg": "Unauthorized"})

        client = make_client(handler)
        with pytest.raises(httpx.HTTPStatusError):
            await client.generate_video("x")
        await client.close()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_p1_image_task_payload(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return submitted("img-1")

        client = make_client(handler)
        task_id = await client.create_image_task("Ana in red", ["https://ref/a.png"], seed=12500)
        await client.close()

        assert task_id == "img-1"
        assert bodies[0] == {
            "model": "google/nano-banana-edit",
            "input": {
                "prompt": "Ana in red",
                "image_urls": ["https://ref/a.png"],
                "output_format": "png",
                "image_size": "9:16",
                "n": 1,
                "seed": 12500,
            },
        }

    @pytest.mark.asyncio
    async def test_p2_image_task_requires_reference(self):
        client = make_client(lambda request: submitted())

        with pytest.raises(ValueError, match="reference image"):
            await client.create_image_task("x", [])
        await client.close()


class TestPolling:
    """Tests for wait_for_video / wait_for_image."""

    @pytest.mark.asyncio
    @patch("fantasy_ops.clients.kie.asyncio.sleep", new_callable=AsyncMock)
    async def test_p1_polls_until_success(self, mock_sleep):
        """[P1] Should sleep the fixed interval between checks and return the URL."""
        # GIVEN: Two processing answers then success
        flags = [0, 0, 1]
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params["taskId"])
            flag = flags[len(seen) - 1]
            data = {"successFlag": flag, "response": {"resultUrls": ["https://cdn/v.mp4"]} if flag == 1 else None}
            return httpx.Response(200, json={"code": 200, "data": data})

        client = make_client(handler)

        # WHEN: Waiting for the video
        url = await client.wait_for_video("task-1", interval=10, max_attempts=30)
        await client.close()

        # THEN: Three checks, two sleeps of the fixed interval
        assert url == "https://cdn/v.mp4"
        assert seen == ["task-1", "task-1", "task-1"]
        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(10)

    @pytest.mark.asyncio
    @patch("fantasy_ops.clients.kie.asyncio.sleep", new_callable=AsyncMock)
    async def test_p1_timeout_after_max_attempts(self, mock_sleep):
        """[P1] Should raise GenerationTimeoutError after the ceiling."""
        client = make_client(lambda request: httpx.Response(200, json={"code": 200, "data": {"successFlag": 0}}))

        with pytest.raises(GenerationTimeoutError) as exc_info:
            await client.wait_for_video("task-1", interval=5, max_attempts=3)
        await client.close()

        assert exc_info.value.attempts == 3
        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    @patch("fantasy_ops.clients.kie.asyncio.sleep", new_callable=AsyncMock)
    async def test_p1_failure_raises(self, mock_sleep):
        client = make_client(
            lambda request: httpx.Response(200, json={"code": 200, "data": {"state": "fail", "failMsg": "nsfw"}})
        )

        with pytest.raises(GenerationFailedError, match="nsfw"):
            await client.wait_for_image("img-1")
        await client.close()

        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    @patch("fantasy_ops.clients.kie.asyncio.sleep", new_callable=AsyncMock)
    async def test_p2_success_without_urls_is_failure(self, mock_sleep):
        client = make_client(
            lambda request: httpx.Response(200, json={"code": 200, "data": {"successFlag": 1, "response": {"resultUrls": []}}})
        )

        with pytest.raises(GenerationFailedError, match="without result URLs"):
            await client.wait_for_video("task-1")
        await client.close()


class TestDownload:
    """Tests for download."""

    @pytest.mark.asyncio
    async def test_p1_streams_to_file(self, tmp_path: Path):
        """[P1] Should write the body and create parent directories."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, content=b"mp4-bytes")

        client = make_client(handler)
        output = await client.download("https://tempfile.aiquickdraw.com/v.mp4", tmp_path / "out" / "v.mp4")
        await client.close()

        assert output.read_bytes() == b"mp4-bytes"
        assert "Authorization" not in seen["request"].headers

    @pytest.mark.asyncio
    async def test_p2_download_error(self, tmp_path: Path):
        client = make_client(lambda request: httpx.Response(404))

        with pytest.raises(httpx.HTTPStatusError):
            await client.download("https://cdn/missing.mp4", tmp_path / "v.mp4")
        await client.close()
