"""
LLM Client with unified interface.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
import httpx
import structlog

logger = structlog.get_logger()


@dataclass
class LLMResponse:
    """Response from LLM"""
    content: str
    model: str
    provider: str
    tokens_used: int = 0
    latency_ms: float = 0
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and bool(self.content)


class LLMClient:
    """
    Unified LLM client.

    Supports:
    - OpenAI and OpenAI-compatible gateways (OpenRouter, LiteLLM)
    - Anthropic (Claude)

    The underlying ``httpx.AsyncClient`` is shared for the lifetime of the
    application; pass one in to reuse an existing pool.
    """

    DEFAULT_BASE_URLS = {
        "openai": "https://api.openai.com/v1",
        "anthropic": "https://api.anthropic.com/v1",
        "openrouter": "https://openrouter.ai/api/v1",
        "litellm": "http://localhost:4000",
    }

    def __init__(
        self,
        provider: str = "openai",
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize LLM client.

        Args:
            provider: LLM provider (openai, anthropic, openrouter, litellm)
            model: Model name
            api_key: API key
            base_url: Custom base URL for API
            timeout: Request timeout in seconds
            http_client: Shared HTTP client
        """
        self.provider = provider.lower()
        self.model = model
        self.timeout = timeout
        self.api_key = api_key
        self.base_url = (base_url or self.DEFAULT_BASE_URLS.get(self.provider, "http://localhost:4000")).rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self):
        await self._client.aclose()

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        """
        Generate text completion.

        Errors and timeouts are reported on the returned response rather
        than raised.
        """
        start_time = datetime.now()

        try:
            if self.provider == "anthropic":
                response = await self._generate_anthropic(prompt, system_prompt, temperature, max_tokens)
            else:
                response = await self._generate_openai(prompt, system_prompt, temperature, max_tokens)

            latency = (datetime.now() - start_time).total_seconds() * 1000
            response.latency_ms = latency

            logger.info(
                "llm_generation_complete",
                provider=self.provider,
                model=self.model,
                latency_ms=latency,
                tokens=response.tokens_used,
            )

            return response

        except httpx.TimeoutException as e:
            latency = (datetime.now() - start_time).total_seconds() * 1000
            logger.error("llm_generation_timeout", provider=self.provider, model=self.model,
                         timeout=self.timeout, error=str(e))
            return LLMResponse(
                content="",
                model=self.model,
                provider=self.provider,
                latency_ms=latency,
                error=f"Request timed out after {self.timeout}s",
                timed_out=True,
            )

        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            latency = (datetime.now() - start_time).total_seconds() * 1000

            logger.error(
                "llm_generation_error",
                provider=self.provider,
                model=self.model,
                error=str(e),
            )

            return LLMResponse(
                content="",
                model=self.model,
                provider=self.provider,
                latency_ms=latency,
                error=str(e),
            )

    async def _generate_openai(
        self,
        prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        """Generate using OpenAI-compatible API"""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        if self.provider == "openrouter":
            headers["X-Title"] = "LegalEase AI"

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        response = await self._client.post(
            f"{self.base_url}/chat/completions",
            headers=headers,
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()

        content = data["choices"][0]["message"]["content"]
        tokens = data.get("usage", {}).get("total_tokens", 0)

        return LLMResponse(
            content=content,
            model=self.model,
            provider=self.provider,
            tokens_used=tokens,
            metadata=data.get("usage", {}),
        )

    async def _generate_anthropic(
        self,
        prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        """Generate using Anthropic API"""
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key or "",
            "anthropic-version": "2023-06-01",
        }

        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        if system_prompt:
            payload["system"] = system_prompt

        response = await self._client.post(
            f"{self.base_url}/messages",
            headers=headers,
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()

        content = data["content"][0]["text"]
        usage = data.get("usage", {})
        tokens = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)

        return LLMResponse(
            content=content,
            model=self.model,
            provider=self.provider,
            tokens_used=tokens,
            metadata=usage,
        )
