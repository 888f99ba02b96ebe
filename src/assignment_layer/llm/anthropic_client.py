"""
Anthropic Messages API client.

Communicates with the Anthropic API using httpx AsyncClient. Supports:
- System prompt, sampling parameters and stop sequences
- Tool definitions with a forced tool choice (closed-vocabulary steering)
- Connection pooling via a persistent AsyncClient
- Health checks

The client performs exactly one HTTP call per generate(); retries belong to
the ResilientClient.
"""

import json
import time
from typing import Any, Dict, Optional
import httpx
import structlog

from assignment_layer.llm.base_client import BaseLLMClient
from assignment_layer.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from assignment_layer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from assignment_layer.monitoring.metrics import (
    llm_latency_seconds,
    llm_requests_total,
    llm_tokens_total,
)


logger = structlog.get_logger(__name__)


class AnthropicClient(BaseLLMClient):
    """
    Anthropic-specific LLM client using httpx for async HTTP communication.

    API Endpoints:
    - POST /v1/messages: Create a message (optionally with tools)
    - GET /v1/models: Lightweight reachability check
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        timeout: int = 30,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            base_url: API base URL
            api_version: Value of the anthropic-version header
            timeout: Request timeout in seconds
            connection_limits: httpx connection pool limits (default: 10 max connections)
            transport: Optional httpx transport (used by tests)
            **kwargs: Additional config

        Raises:
            LLMAuthenticationError: If no API key is configured
        """
        if not api_key:
            raise LLMAuthenticationError(
                "Anthropic API key is required to assign categories and budgets",
                details={"required_key": "ANTHROPIC_API_KEY"},
            )

        super().__init__(base_url, timeout, **kwargs)

        self._api_key = api_key
        self.api_version = api_version

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                headers={
                    "x-api-key": self._api_key,
                    "anthropic-version": self.api_version,
                    "content-type": "application/json",
                },
                transport=self._transport,
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    @staticmethod
    def build_payload(request: LLMGenerationRequest) -> Dict[str, Any]:
        """
        Build the /v1/messages payload:
        {
            "model": "claude-3-5-haiku-latest",
            "max_tokens": 1024,
            "messages": [{"role": "user", "content": "..."}],
            "system": "...",
            "temperature": 0.2,
            "tools": [{"name": "assign_budgets", "description": "...", "input_schema": {...}}],
            "tool_choice": {"type": "tool", "name": "assign_budgets"}
        }
        """
        payload: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": [m.model_dump() for m in request.messages],
            "temperature": request.temperature,
        }

        if request.system:
            payload["system"] = request.system
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.top_k is not None:
            payload["top_k"] = request.top_k
        if request.stop_sequences:
            payload["stop_sequences"] = request.stop_sequences
        if request.metadata:
            payload["metadata"] = request.metadata

        if request.tools:
            payload["tools"] = [tool.model_dump() for tool in request.tools]
        if request.tool_choice:
            payload["tool_choice"] = {"type": "tool", "name": request.tool_choice}

        return payload

    @staticmethod
    def extract_content(blocks: list[Any]) -> str:
        """
        Join the usable content of the response blocks.

        Text blocks contribute their text; tool_use blocks contribute their
        input serialised as JSON. Blocks are joined with newlines.
        """
        parts: list[str] = []
        for block in blocks:
            if not isinstance(block, dict):
                continue
            if block.get("type") == "text" and isinstance(block.get("text"), str):
                if block["text"]:
                    parts.append(block["text"])
            elif block.get("type") == "tool_use" and block.get("input"):
                parts.append(json.dumps(block["input"]))
        return "\n".join(parts)

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """Create a message via POST /v1/messages."""
        start_time = time.time()
        payload = self.build_payload(request)

        logger.debug(
            "Sending message request to Anthropic",
            model=request.model,
            message_count=len(request.messages),
            has_tools=bool(request.tools),
            tool_choice=request.tool_choice,
        )

        try:
            client = await self._get_client()
            response = await client.post("/v1/messages", json=payload)
            response.raise_for_status()
            response_data = response.json()

        except httpx.TimeoutException as e:
            llm_requests_total.labels(outcome="timeout").inc()
            raise LLMTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout, "error": str(e)}
            ) from e

        except httpx.HTTPStatusError as e:
            self._observe_failure(request.model, start_time)
            raise self._map_status_error(e, request.model) from e

        except httpx.TransportError as e:
            llm_requests_total.labels(outcome="error").inc()
            raise LLMConnectionError(
                f"Network error: {str(e)}",
                details={"error_type": type(e).__name__}
            ) from e

        except json.JSONDecodeError as e:
            llm_requests_total.labels(outcome="error").inc()
            raise LLMGenerationError(
                "Invalid JSON response from Anthropic",
                details={"parse_error": str(e)}
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)
        content = self.extract_content(response_data.get("content") or [])
        if not content:
            llm_requests_total.labels(outcome="error").inc()
            raise LLMGenerationError(
                "No text content found in response",
                details={"stop_reason": response_data.get("stop_reason")}
            )

        model_version = response_data.get("model", request.model)
        usage = response_data.get("usage") or {}
        prompt_tokens = usage.get("input_tokens")
        completion_tokens = usage.get("output_tokens")

        logger.info(
            "Anthropic generation successful",
            model=model_version,
            latency_ms=latency_ms,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            stop_reason=response_data.get("stop_reason"),
        )

        llm_requests_total.labels(outcome="success").inc()
        llm_latency_seconds.labels(model=model_version, success="true").observe(latency_ms / 1000.0)
        if prompt_tokens:
            llm_tokens_total.labels(model=model_version, token_type="prompt").inc(prompt_tokens)
        if completion_tokens:
            llm_tokens_total.labels(model=model_version, token_type="completion").inc(completion_tokens)

        return LLMGenerationResponse(
            content=content,
            model_version=model_version,
            stop_reason=response_data.get("stop_reason"),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms,
            raw_metadata={"id": response_data.get("id")},
        )

    def _observe_failure(self, model: str, start_time: float) -> None:
        llm_latency_seconds.labels(model=model, success="false").observe(time.time() - start_time)

    def _map_status_error(self, error: httpx.HTTPStatusError, model: str) -> Exception:
        """Translate an HTTP error status into the LLM exception hierarchy."""
        status_code = error.response.status_code
        error_text = error.response.text[:500]
        details = {"status": status_code, "error": error_text}

        logger.warning("Anthropic HTTP error", status_code=status_code, error_text=error_text)

        if status_code in (401, 403):
            llm_requests_total.labels(outcome="auth_error").inc()
            return LLMAuthenticationError(
                f"Anthropic rejected the API key: {status_code}", details=details
            )
        if status_code == 404:
            llm_requests_total.labels(outcome="error").inc()
            return LLMModelNotAvailableError(f"Model not found: {model}", details=details)
        if status_code == 429:
            llm_requests_total.labels(outcome="rate_limited").inc()
            retry_after = error.response.headers.get("retry-after")
            return LLMRateLimitError(
                "Anthropic rate limit exceeded",
                details=details,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        llm_requests_total.labels(outcome="error").inc()
        if status_code >= 500:
            return LLMGenerationError(f"Anthropic server error: {status_code}", details=details)
        return LLMGenerationError(f"Anthropic client error: {status_code}", details=details)

    async def health_check(self) -> bool:
        """Check reachability via GET /v1/models. Never raises."""
        try:
            client = await self._get_client()
            response = await client.get("/v1/models", timeout=5.0)
            response.raise_for_status()
            return True
        except Exception as e:
            logger.warning("Anthropic health check failed", error=str(e))
            return False

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Anthropic client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
