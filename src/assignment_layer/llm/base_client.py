"""
Abstract base client for LLM inference.

Defines the interface every provider client implements. The ResilientClient
only talks to this interface, so providers can be swapped (or mocked in
tests) without touching rate limiting, circuit breaking or validation.
"""

from abc import ABC, abstractmethod
import structlog

from assignment_layer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class BaseLLMClient(ABC):
    """
    Abstract base class for LLM inference clients.

    Responsibilities:
    - Send one generation request to the provider
    - Map the provider's response to LLMGenerationResponse
    - Map transport/HTTP failures to LLMClientError subclasses

    Does NOT handle:
    - Retries, backoff, rate limiting, circuit breaking (ResilientClient)
    - Prompt construction (PromptBuilder)
    - Label validation (ResponseValidator)
    """

    def __init__(self, base_url: str, timeout: int = 30, **kwargs):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the provider API
            timeout: Request timeout in seconds
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized LLM client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
        )

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Generate a completion.

        Args:
            request: Provider-neutral generation request

        Returns:
            LLMGenerationResponse with the text content and usage metadata

        Raises:
            LLMAuthenticationError: Credentials missing or rejected (fatal)
            LLMRateLimitError: Provider throttled the request
            LLMConnectionError: Network errors
            LLMTimeoutError: Request exceeded timeout
            LLMGenerationError: Provider-side failure or empty content
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check whether the provider is reachable.

        Must not raise: return False on any error.
        """
        pass

    async def close(self):
        """Release connections. Default implementation does nothing."""
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
