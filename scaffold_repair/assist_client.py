"""Async client for the optional generative-AI repair collaborator.

Talks to an Ollama-compatible HTTP API (``/api/generate``, ``/api/tags``)
with a bearer token, a bounded timeout, and structured responses. Every
transport or protocol failure is returned as an ``AssistResponse`` with
``success=False``; nothing here raises to the caller.

Typical usage::

    client = AssistClient.from_config(settings.assist)
    resp = await client.generate("Fix this file ...", system=REPAIR_SYSTEM_PROMPT)
    if resp.success:
        print(resp.text)
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, Field

from scaffold_repair.config import AssistConfig


class AssistResponse(BaseModel):
    """Structured response from a generation call."""

    text: str = Field(default="", description="Generated text")
    model: str = Field(default="", description="Model that produced the response")
    duration_ms: float = Field(default=0.0, description="Server-side generation time in ms")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class AssistClient:
    """Async client for an Ollama-compatible generation endpoint.

    The client uses ``httpx.AsyncClient`` for non-blocking HTTP. A fresh
    client is opened per request so instances carry no connection state
    between repair runs.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen2.5-coder:14b",
        api_key: str = "",
        timeout: int = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: AssistConfig) -> "AssistClient":
        return cls(
            base_url=config.url,
            model=config.model,
            api_key=config.api_key,
            timeout=config.timeout,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        """The non-streaming ``/api/generate`` reply carries the text in ``"response"``."""
        return data.get("response", "")

    @staticmethod
    def _extract_duration_ms(data: dict) -> float:
        """``total_duration`` is reported in nanoseconds."""
        ns = data.get("total_duration", 0)
        return ns / 1_000_000.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, prompt: str, system: str = "", model: str | None = None) -> AssistResponse:
        """Generate text from a prompt.

        Args:
            prompt: The user prompt.
            system: Optional system prompt.
            model: Model tag; defaults to the client's configured model.

        Returns:
            An ``AssistResponse`` with the generated text or an error.
        """
        model = model or self.model
        payload: dict = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": 0.1},
        }
        if system:
            payload["system"] = system

        try:
            async with self._client() as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
                return AssistResponse(
                    text=self._extract_text(data),
                    model=data.get("model", model),
                    duration_ms=self._extract_duration_ms(data),
                    success=True,
                )
        except httpx.ConnectError:
            return AssistResponse(
                model=model,
                success=False,
                error=f"Cannot connect to the assist endpoint at {self.base_url}.",
            )
        except httpx.TimeoutException:
            return AssistResponse(
                model=model,
                success=False,
                error=f"Assist request timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return AssistResponse(
                model=model,
                success=False,
                error=f"Assist endpoint returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
            )
        except Exception as exc:  # noqa: BLE001
            return AssistResponse(
                model=model,
                success=False,
                error=f"Unexpected error during assist generate: {exc}",
            )

    async def is_available(self) -> bool:
        """Return ``True`` if the endpoint responds to ``/api/tags``."""
        try:
            async with self._client() as client:
                response = await client.get("/api/tags")
                return response.status_code == 200
        except Exception:  # noqa: BLE001
            return False
