"""
LLM Client - Gemini generateContent gateway.

Serializes an assembled conversation into Gemini's role-tagged ``contents``,
attaches the fixed generation parameters and safety policy, and maps provider
and transport failures to local error types. One request per call, no retries.
"""
import logging
from typing import Dict, List, Optional, Sequence

import httpx

from flow_reader.core.config import settings
from flow_reader.core.exceptions import (
    EmptyGenerationError,
    NotConfiguredError,
    ProviderError,
    TransportError,
)
from flow_reader.models.message import ROLE_USER
from flow_reader.services.prompt_composer import PromptTurn
from flow_reader.services.settings_store import ModelConfig

logger = logging.getLogger(__name__)


GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]

UNREADABLE_RESPONSE = "API 응답을 해석할 수 없습니다."


def to_gemini_contents(turns: Sequence[PromptTurn]) -> List[Dict]:
    """Convert prompt turns to Gemini ``contents`` (assistant -> model)."""
    return [
        {
            "role": "user" if turn.role == ROLE_USER else "model",
            "parts": [{"text": turn.text}],
        }
        for turn in turns
    ]


def build_request_body(turns: Sequence[PromptTurn]) -> Dict:
    return {
        "contents": to_gemini_contents(turns),
        "generationConfig": dict(GENERATION_CONFIG),
        "safetySettings": [dict(item) for item in SAFETY_SETTINGS],
    }


def _provider_message(resp: httpx.Response) -> Optional[str]:
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return None


def _extract_text(data, status_code: int) -> str:
    """
    Read the text of the first candidate from a ``generateContent`` body.

    Raises:
        ProviderError: The body does not have the documented shape
        EmptyGenerationError: No candidate or no text (e.g. safety block)
    """
    if not isinstance(data, dict):
        raise ProviderError(UNREADABLE_RESPONSE, provider_status=status_code)

    candidates = data.get("candidates")
    if not candidates:
        raise EmptyGenerationError()
    if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
        raise ProviderError(UNREADABLE_RESPONSE, provider_status=status_code)

    candidate = candidates[0]
    content = candidate.get("content") or {}
    if not isinstance(content, dict):
        raise ProviderError(UNREADABLE_RESPONSE, provider_status=status_code)
    parts = content.get("parts") or []
    if not isinstance(parts, list) or not all(isinstance(part, dict) for part in parts):
        raise ProviderError(UNREADABLE_RESPONSE, provider_status=status_code)

    texts = [part["text"] for part in parts if "text" in part]
    if not all(isinstance(text, str) for text in texts):
        raise ProviderError(UNREADABLE_RESPONSE, provider_status=status_code)

    text = "".join(texts)
    if not text:
        logger.warning(f"Gemini returned no text (finishReason={candidate.get('finishReason')})")
        raise EmptyGenerationError()
    return text


class LLMClient:
    """
    Stateless client for the Gemini ``generateContent`` endpoint.

    The credential and model are passed per call so changes to the settings
    table apply to the next request without rebuilding the client.
    """

    def __init__(
        self,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = (api_base or settings.GEMINI_API_BASE).rstrip("/")
        self.timeout = timeout or settings.LLM_TIMEOUT
        self.transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.timeout,
            transport=self.transport,
        )

    async def generate(
        self,
        turns: Sequence[PromptTurn],
        config: ModelConfig,
    ) -> str:
        """
        Send one generation request and return the reply text.

        Args:
            turns: Assembled conversation, oldest first
            config: Credential and model to use

        Returns:
            Text of the first candidate

        Raises:
            NotConfiguredError: No API key is set (no request is made)
            ProviderError: Non-success response or unreadable body
            EmptyGenerationError: Success response without any output
            TransportError: Timeout, connection or other network failure
        """
        if not config.api_key or not config.api_key.strip():
            raise NotConfiguredError()

        url = f"{self.api_base}/models/{config.model}:generateContent"
        logger.info(f"Calling Gemini model={config.model} turns={len(turns)}")

        try:
            async with self._client() as client:
                resp = await client.post(
                    url,
                    headers={"x-goog-api-key": config.api_key.strip()},
                    json=build_request_body(turns),
                )
        except httpx.HTTPError as e:
            logger.error(f"Gemini transport failure: {type(e).__name__}: {e}")
            raise TransportError() from e

        if not resp.is_success:
            message = _provider_message(resp)
            logger.error(f"Gemini API error: HTTP {resp.status_code} {message or ''}")
            raise ProviderError(
                message or "API 요청에 실패했습니다.",
                provider_status=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(UNREADABLE_RESPONSE, provider_status=resp.status_code) from e

        return _extract_text(data, resp.status_code)

    async def health_check(self, config: ModelConfig) -> Dict:
        """
        Check that the provider is reachable and accepts the credential.

        Returns:
            Dict with 'status', 'model', and optional 'error' keys
        """
        if not config.api_key or not config.api_key.strip():
            return {"status": "not_configured", "model": config.model}

        try:
            async with self._client(timeout=10.0) as client:
                resp = await client.get(
                    f"{self.api_base}/models/{config.model}",
                    headers={"x-goog-api-key": config.api_key.strip()},
                )
            if resp.status_code == 200:
                return {
                    "status": "healthy",
                    "model": config.model,
                    "api_base": self.api_base,
                }
            return {
                "status": "unhealthy",
                "model": config.model,
                "error": _provider_message(resp) or f"HTTP {resp.status_code}",
            }
        except httpx.HTTPError as e:
            return {
                "status": "unreachable",
                "model": config.model,
                "api_base": self.api_base,
                "error": str(e),
            }


# Default client instance
_default_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get the default LLM client instance (singleton)."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
    return _default_client
