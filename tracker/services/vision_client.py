"""
Field Extractor Adapter for the document recognition service.

Submits a screenshot to a custom extraction model (Azure Document
Intelligence REST protocol), polls the returned operation until the job
finishes and flattens the first document's fields into
``{field_name: recognized_text}``. No game rules live here.
"""

import asyncio
import base64
from typing import Any, Dict, Mapping, Optional

import httpx

from tracker.config import Config
from tracker.constants import VisionMessages
from tracker.utils.exceptions import EmptyResult, ExtractionFailed, ExtractionTimeout
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)

ANALYZE_PATH = "/documentintelligence/documentModels/{model_id}:analyze"
API_KEY_HEADER = "Ocp-Apim-Subscription-Key"


class DocumentVisionClient:
    """Thin async client over the recognition service's analyze/poll calls"""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        api_version: Optional[str] = None,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.endpoint = (endpoint or Config.VISION_ENDPOINT).rstrip('/')
        self.api_key = api_key or Config.VISION_API_KEY
        self.api_version = api_version or Config.VISION_API_VERSION
        self.poll_interval = Config.VISION_POLL_INTERVAL if poll_interval is None else poll_interval
        self.timeout = Config.VISION_TIMEOUT_SECONDS if timeout is None else timeout
        self.transport = transport

    async def extract(self, image: bytes, game_id: int) -> Dict[str, str]:
        """
        Run the game's extraction model over a screenshot.

        Args:
            image: Raw image bytes
            game_id: Game whose model should read the screenshot

        Returns:
            Field name -> recognized text

        Raises:
            ExtractionFailed: Submission or polling failed
            ExtractionTimeout: The job did not finish within the timeout
            EmptyResult: The finished job holds no document or no fields
        """
        try:
            model_id = Config.get_vision_model_id(game_id)
        except ValueError as e:
            raise ExtractionFailed(str(e))

        async with httpx.AsyncClient(
            timeout=Config.VISION_REQUEST_TIMEOUT,
            transport=self.transport,
            headers={API_KEY_HEADER: self.api_key}
        ) as client:
            operation_url = await self._submit(client, model_id, image)
            logger.debug(f"Submitted screenshot to model {model_id}, polling {operation_url}")
            try:
                body = await asyncio.wait_for(
                    self._poll_until_done(client, operation_url),
                    timeout=self.timeout
                )
            except asyncio.TimeoutError:
                logger.warning(f"Vision analysis for game {game_id} timed out after {self.timeout}s")
                raise ExtractionTimeout(self.timeout)

        return self._extract_fields(body)

    async def _submit(self, client: httpx.AsyncClient, model_id: str, image: bytes) -> str:
        url = self.endpoint + ANALYZE_PATH.format(model_id=model_id)
        try:
            response = await client.post(
                url,
                params={"api-version": self.api_version},
                json={"base64Source": base64.b64encode(image).decode('ascii')}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Vision submission failed: {e}")
            raise ExtractionFailed(str(e))

        operation_url = response.headers.get("Operation-Location")
        if not operation_url:
            raise ExtractionFailed("Vision service did not return an operation location")
        return operation_url

    async def _poll_until_done(self, client: httpx.AsyncClient, operation_url: str) -> Dict[str, Any]:
        while True:
            try:
                response = await client.get(operation_url)
                response.raise_for_status()
                body = response.json()
            except httpx.HTTPError as e:
                logger.error(f"Vision polling failed: {e}")
                raise ExtractionFailed(str(e))
            except ValueError:
                raise ExtractionFailed("Vision service returned an unreadable response")

            status = (body.get("status") or "").lower()
            if status == "succeeded":
                return body
            if status == "failed":
                error = body.get("error") or {}
                raise ExtractionFailed(error.get("message") or "Vision analysis failed")

            await asyncio.sleep(self.poll_interval)

    @staticmethod
    def _extract_fields(body: Mapping[str, Any]) -> Dict[str, str]:
        analyze_result = body.get("analyzeResult")
        documents = (analyze_result or {}).get("documents")
        if not analyze_result or not documents:
            raise EmptyResult(VisionMessages.ANALYZE_RESULT_UNDEFINED)

        fields = documents[0].get("fields")
        if not fields:
            raise EmptyResult(VisionMessages.FIELDS_UNDEFINED)

        return {name: _field_text(value) for name, value in fields.items()}


def _field_text(field: Any) -> str:
    """Recognized text of one document field"""
    if not isinstance(field, Mapping):
        return ""
    for key in ("content", "valueString"):
        if field.get(key):
            return str(field[key])
    for key in ("valueInteger", "valueNumber"):
        if field.get(key) is not None:
            return str(field[key])
    return ""
