"""Async client for the local Ollama API.

Wraps the Ollama HTTP API (``/api/generate``, ``/api/tags``) with timeout
handling, structured responses, JSON-mode generation and automatic model
fallback.  Failures never raise: they come back as an ``LLMResponse`` with
``success=False`` so callers can switch to rule-based analysis.

Typical usage::

    client = OllamaClient()
    if await client.is_available():
        resp = await client.generate("Describe a todo app", json_mode=True)
        print(resp.text)
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, Field

from rahl.config import LLMConfig


class LLMResponse(BaseModel):
    """Structured response from an Ollama generation call."""

    text: str = Field(default="", description="Generated text")
    model: str = Field(default="", description="Model that produced the response")
    duration_ms: float = Field(default=0.0, description="Server-side generation time in ms")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class OllamaClient:
    """Async client for the Ollama REST API.

    Uses ``httpx.AsyncClient`` for non-blocking HTTP and exposes text
    generation, availability checks and model listing.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: int = 60,
        model: str = "qwen2.5-coder:14b",
        fallback_model: str = "llama3.1:8b",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.model = model
        self.fallback_model = fallback_model

    @classmethod
    def from_config(cls, config: LLMConfig) -> "OllamaClient":
        return cls(
            base_url=config.url,
            timeout=config.timeout,
            model=config.model,
            fallback_model=config.fallback_model,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Pull the generated text out of a /api/generate JSON response.

        Ollama's non-streaming response puts the full text in ``"response"``.
        """
        return data.get("response", "")

    @staticmethod
    def _extract_duration_ms(data: dict) -> float:
        """Extract the total generation duration in milliseconds.

        The API returns ``total_duration`` in **nanoseconds**.
        """
        ns = data.get("total_duration", 0)
        return ns / 1_000_000.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        model: str | None = None,
        system: str = "",
        json_mode: bool = False,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate text from a prompt.

        Args:
            prompt: The user prompt.
            model: Ollama model tag to use. Defaults to ``self.model``.
            system: Optional system prompt.
            json_mode: Ask Ollama to constrain the output to a JSON document.
            temperature: Sampling temperature.

        Returns:
            An ``LLMResponse`` with the generated text or an error.
        """
        model = model or self.model
        payload: dict = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if system:
            payload["system"] = system
        if json_mode:
            payload["format"] = "json"

        try:
            async with self._client() as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
                return LLMResponse(
                    text=self._extract_text(data),
                    model=data.get("model", model),
                    duration_ms=self._extract_duration_ms(data),
                    success=True,
                )
        except httpx.ConnectError:
            return LLMResponse(
                model=model,
                success=False,
                error=f"Cannot connect to Ollama at {self.base_url}. Is the server running?",
            )
        except httpx.TimeoutException:
            return LLMResponse(
                model=model,
                success=False,
                error=f"Request to Ollama timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return LLMResponse(
                model=model,
                success=False,
                error=f"Ollama returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
            )
        except Exception as exc:  # noqa: BLE001
            return LLMResponse(
                model=model,
                success=False,
                error=f"Unexpected error during Ollama generate: {exc}",
            )

    async def generate_with_fallback(
        self,
        prompt: str,
        system: str = "",
        json_mode: bool = False,
    ) -> LLMResponse:
        """Try ``self.model`` first; on failure retry once with ``self.fallback_model``."""
        result = await self.generate(prompt, model=self.model, system=system, json_mode=json_mode)
        if result.success or self.fallback_model == self.model:
            return result
        return await self.generate(
            prompt, model=self.fallback_model, system=system, json_mode=json_mode
        )

    async def is_available(self) -> bool:
        """Return ``True`` if the Ollama server responds to ``/api/tags``."""
        try:
            async with self._client() as client:
                response = await client.get("/api/tags")
                return response.status_code == 200
        except Exception:  # noqa: BLE001
            return False

    async def list_models(self) -> list[str]:
        """Return the sorted names of all locally-available models.

        Returns an empty list if the server is unreachable.
        """
        try:
            async with self._client() as client:
                response = await client.get("/api/tags")
                response.raise_for_status()
                data = response.json()
                models = data.get("models", [])
                return sorted(m.get("name", "") for m in models if m.get("name"))
        except Exception:  # noqa: BLE001
            return []
