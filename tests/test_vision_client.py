"""Tests for DocumentVisionClient against a mocked recognition service."""

import asyncio
import base64
import json

import httpx
import pytest

from tracker.constants import VisionMessages
from tracker.services.vision_client import DocumentVisionClient
from tracker.utils.exceptions import EmptyResult, ExtractionFailed, ExtractionTimeout

ENDPOINT = "https://vision.example.com"
OPERATION_URL = f"{ENDPOINT}/documentintelligence/documentModels/m/analyzeResults/op-1"


def _service(poll_bodies, submit_status=202, operation_location=OPERATION_URL, requests=None):
    """MockTransport that accepts one submission then answers polls in order"""
    bodies = list(poll_bodies)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.method == "POST":
            headers = {"Operation-Location": operation_location} if operation_location else {}
            return httpx.Response(submit_status, headers=headers)
        body = bodies.pop(0) if len(bodies) > 1 else bodies[0]
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    return httpx.MockTransport(handler)


def _client(transport, timeout=5.0):
    return DocumentVisionClient(
        endpoint=ENDPOINT,
        api_key="secret",
        api_version="2024-11-30",
        poll_interval=0,
        timeout=timeout,
        transport=transport
    )


def _succeeded(fields):
    return {"status": "succeeded", "analyzeResult": {"documents": [{"fields": fields}]}}


class TestExtract:
    async def test_returns_flattened_fields_after_polling(self):
        requests = []
        transport = _service(
            [
                {"status": "running"},
                _succeeded({
                    "player1_name": {"type": "string", "content": "Ben", "valueString": "Ben"},
                    "player1_score": {"type": "integer", "valueInteger": 1200},
                    "player1_kills": {"type": "string"},
                }),
            ],
            requests=requests
        )

        fields = await _client(transport).extract(b"png-bytes", 3)

        assert fields == {"player1_name": "Ben", "player1_score": "1200", "player1_kills": ""}

        submit = requests[0]
        assert submit.url.path.endswith("/documentModels/rdc-cod-gun-game:analyze")
        assert submit.url.params["api-version"] == "2024-11-30"
        assert submit.headers["Ocp-Apim-Subscription-Key"] == "secret"
        assert json.loads(submit.content) == {"base64Source": base64.b64encode(b"png-bytes").decode()}
        assert len(requests) == 3

    async def test_failed_job_raises_with_service_message(self):
        transport = _service([{"status": "failed", "error": {"message": "Poller Error"}}])
        with pytest.raises(ExtractionFailed, match="Poller Error"):
            await _client(transport).extract(b"img", 3)

    async def test_http_error_during_polling_raises(self):
        transport = _service([httpx.Response(500, text="boom")])
        with pytest.raises(ExtractionFailed):
            await _client(transport).extract(b"img", 3)

    async def test_rejected_submission_raises(self):
        transport = _service([_succeeded({})], submit_status=401)
        with pytest.raises(ExtractionFailed):
            await _client(transport).extract(b"img", 3)

    async def test_missing_operation_location_raises(self):
        transport = _service([_succeeded({})], operation_location=None)
        with pytest.raises(ExtractionFailed):
            await _client(transport).extract(b"img", 3)

    async def test_unknown_game_has_no_model(self):
        transport = _service([_succeeded({})])
        with pytest.raises(ExtractionFailed):
            await _client(transport).extract(b"img", 999)

    async def test_no_documents_is_an_empty_result(self):
        transport = _service([{"status": "succeeded", "analyzeResult": {"documents": []}}])
        with pytest.raises(EmptyResult) as exc_info:
            await _client(transport).extract(b"img", 3)
        assert str(exc_info.value) == VisionMessages.ANALYZE_RESULT_UNDEFINED

    async def test_document_without_fields_is_an_empty_result(self):
        transport = _service([_succeeded({})])
        with pytest.raises(EmptyResult) as exc_info:
            await _client(transport).extract(b"img", 3)
        assert str(exc_info.value) == VisionMessages.FIELDS_UNDEFINED

    async def test_job_that_never_finishes_times_out(self):
        transport = _service([{"status": "running"}])
        client = _client(transport, timeout=0.05)
        client.poll_interval = 0.01

        with pytest.raises(ExtractionTimeout):
            await client.extract(b"img", 3)

    async def test_timeout_is_an_extraction_failure(self):
        assert issubclass(ExtractionTimeout, ExtractionFailed)
        assert not issubclass(ExtractionTimeout, asyncio.TimeoutError)
