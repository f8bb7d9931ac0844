"""
Async HTTP client for the remote transcript conversion service.

Sends one POST per transcript with a long fixed timeout and never retries.
Outcomes are returned as ``ConversionSuccess`` / ``ConversionFailure`` values
instead of being raised, so the orchestrator handles both on the event loop
right after the await.
"""

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

EMPTY_RESPONSE = "<empty response>"


@dataclass(frozen=True)
class ConversionSuccess:
    """The service accepted the text; ``body`` is its response payload."""

    body: str


@dataclass(frozen=True)
class ConversionFailure:
    """The call failed; ``reason`` is a human-readable description."""

    reason: str


ConversionResult = ConversionSuccess | ConversionFailure


class ConverterClient:
    """Thin wrapper around ``httpx.AsyncClient`` for the ``/convert`` endpoint.

    Args:
        url: Full endpoint URL, e.g. ``http://localhost:5000/convert``.
        timeout: Seconds applied to connect, read, write and pool acquisition.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        url: str = "http://localhost:5000/convert",
        timeout: float = 200.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    @property
    def url(self) -> str:
        return self._url

    async def convert(self, text: str) -> ConversionResult:
        """POST ``{"text": text}`` and classify the outcome.

        Returns:
            ConversionSuccess on a 2xx response, ConversionFailure on a
            non-2xx status or any transport error.
        """
        try:
            resp = await self._client.post(self._url, json={"text": text})
        except httpx.HTTPError as exc:
            message = f"Conversion failed: {str(exc) or type(exc).__name__}"
            logger.error("%s", message)
            return ConversionFailure(message)

        if resp.is_success:
            body = resp.text or EMPTY_RESPONSE
            logger.debug("Conversion successful: %s", body)
            return ConversionSuccess(body)

        message = f"Conversion failed: {resp.status_code} {resp.reason_phrase}".rstrip()
        logger.error("%s", message)
        return ConversionFailure(message)

    async def aclose(self) -> None:
        await self._client.aclose()
