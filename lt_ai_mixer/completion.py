"""Completion caller for an OpenAI-compatible chat/completions endpoint.

One attempt per prompt, no retries. Failures are logged and reported through
``CompletionResult.status``; nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx
from pydantic import ValidationError

from lt_ai_mixer.config import Settings
from lt_ai_mixer.types import ChatCompletionResponse, CompletionResult, CompletionStatus


class CompletionClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        logger: logging.Logger | None = None,
    ):
        self._client = client
        self._url = f"{settings.openai_url}/chat/completions"
        self._model = settings.openai_model
        self._token = settings.openai_token
        self._system_prompt = settings.openai_prompt
        self._timeout_s = settings.http_timeout_s
        self._logger = logger or logging.getLogger(__name__)

    def build_prompt(self, prompt: str) -> str:
        if self._system_prompt:
            return f"{self._system_prompt}\n\n{prompt}"
        return prompt

    async def complete(self, prompt: str) -> CompletionResult:
        """Ask the model to answer ``prompt``.

        Returns:
            ``ANSWERED`` with the first choice's content, or one of the failure
            statuses with an empty text and a short ``detail``.
        """
        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": self.build_prompt(prompt)}],
        }
        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.post(self._url, json=body, headers=headers),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError:
            self._logger.error(
                "Completion request timed out: url=%s timeout=%.1fs", self._url, self._timeout_s
            )
            return CompletionResult(CompletionStatus.TRANSPORT_ERROR, detail="timeout")
        except httpx.HTTPError as exc:
            self._logger.error("Error making completion request: url=%s error=%r", self._url, exc)
            return CompletionResult(CompletionStatus.TRANSPORT_ERROR, detail=str(exc))
        except httpx.InvalidURL as exc:
            self._logger.error("Error creating completion request: url=%s error=%s", self._url, exc)
            return CompletionResult(CompletionStatus.TRANSPORT_ERROR, detail=str(exc))

        elapsed_ms = (time.monotonic() - start) * 1000

        if not response.is_success:
            self._logger.error(
                "Completion endpoint returned %d (%.0fms): %.200s",
                response.status_code,
                elapsed_ms,
                response.text,
            )
            return CompletionResult(
                CompletionStatus.STATUS_ERROR, detail=f"HTTP {response.status_code}"
            )

        try:
            parsed = ChatCompletionResponse.model_validate_json(response.content)
        except ValidationError as exc:
            self._logger.error(
                "Error decoding completion response: error_count=%d body=%.200s",
                exc.error_count(),
                response.text,
            )
            return CompletionResult(CompletionStatus.MALFORMED_RESPONSE, detail=str(exc))

        if not parsed.choices:
            self._logger.warning("Completion response has no choices (%.0fms)", elapsed_ms)
            return CompletionResult(CompletionStatus.NO_ANSWER, detail="no choices")

        content = parsed.choices[0].message.content or ""
        if not content:
            self._logger.warning("Completion response has empty content (%.0fms)", elapsed_ms)
            return CompletionResult(CompletionStatus.NO_ANSWER, detail="empty content")

        self._logger.info(
            "Completion answered (%.0fms): '%s' -> '%s'",
            elapsed_ms,
            prompt[:60],
            content[:60],
        )
        return CompletionResult(CompletionStatus.ANSWERED, text=content)
