"""OpenAI-compatible completion client.

This client uses LangChain's OpenAI wrapper (`langchain_openai.ChatOpenAI`)
pointed at Groq's OpenAI-compatible endpoint by default.

Contract:
- one prompt in, one completion text out (no streaming)
- failures are raised as TransportError / UpstreamError, never returned as text
- no retries; the caller decides what a failure means
- cancellation of the awaiting task aborts the in-flight HTTP request
"""

from __future__ import annotations

from typing import Any, Protocol

import openai
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from groq_ask.config.model import LlmConfig
from groq_ask.core.clock import elapsed_ms, monotonic_ms
from groq_ask.core.errors import TransportError, UpstreamError
from groq_ask.observability import get_logger


class Completer(Protocol):
    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
    ) -> str: ...


class CompletionClient:
    """Single-shot chat completion against an OpenAI-compatible API."""

    def __init__(self, cfg: LlmConfig, *, model: str | None = None) -> None:
        self._cfg = cfg
        self._model_name = model or cfg.model
        self._log = get_logger("groq_ask.llm")

        self._model = ChatOpenAI(
            model=self._model_name,
            api_key=SecretStr(cfg.api_key),
            base_url=cfg.base_url,
            timeout=cfg.timeout_s,
            max_retries=0,
            max_tokens=cfg.max_tokens,
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
    ) -> str:
        messages: list[BaseMessage] = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))

        model: Any = self._model
        if max_tokens is not None and max_tokens != self._cfg.max_tokens:
            model = self._model.bind(max_tokens=max_tokens)

        t0 = monotonic_ms()
        try:
            reply = await model.ainvoke(messages)
        except openai.APIConnectionError as e:
            # Also covers APITimeoutError.
            raise TransportError(f"cannot reach {self._cfg.base_url}: {e}") from e
        except openai.APIStatusError as e:
            raise UpstreamError(_status_message(e), status_code=e.status_code) from e
        except openai.APIError as e:
            raise UpstreamError(f"malformed response from completion endpoint: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamError(f"malformed response from completion endpoint: {e!r}") from e

        text = _content_text(getattr(reply, "content", None))
        if not text:
            raise UpstreamError("no response from AI: completion was empty")

        self._log.debug(
            "completion_ok",
            model=self._model_name,
            latency_ms=elapsed_ms(t0),
            text_len=len(text),
        )
        return text


class FakeCompletionClient(CompletionClient):
    """Offline stub for running the app without network/API."""

    def __init__(self) -> None:
        super().__init__(LlmConfig(api_key="k_fake"), model="fake")

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
    ) -> str:
        _ = (system, max_tokens)
        return f"(fake) {prompt}"


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                parts.append(block["text"])
        return "".join(parts)
    return ""


def _status_message(e: openai.APIStatusError) -> str:
    body = e.body
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return f"completion endpoint rejected the request: {err['message']}"
    return "completion endpoint rejected the request"
