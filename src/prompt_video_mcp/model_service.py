"""Generative model boundary: session protocols plus the Gemini implementation.

The pipeline only needs four things from a model backend: open a session
for a model id, send one prompt and read the reply, fall back to the
transcript when the reply carries no text, and close the session.
``run_prompt`` composes those steps with a hard timeout so every caller
gets the same acquire/send/release discipline.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from google import genai
from google.genai import types

from .config import get_config
from .errors import GenerationError
from .retry import with_retry

logger = logging.getLogger(__name__)

ASSISTANT_ROLES = frozenset({"assistant", "model"})


@dataclass(frozen=True)
class ModelMessage:
    role: str
    content: str


@runtime_checkable
class ModelSession(Protocol):
    async def send_prompt(self, text: str) -> str | None: ...

    async def list_messages(self) -> list[ModelMessage]: ...

    async def close(self) -> None: ...


@runtime_checkable
class ModelService(Protocol):
    async def start_session(self, model: str) -> ModelSession: ...

    async def list_models(self) -> list[str]: ...


def _visible_text(content: Any) -> str:
    """Join the non-thought text parts of a ``types.Content``."""
    parts = getattr(content, "parts", None) or []
    return "\n".join(p.text for p in parts if getattr(p, "text", None) and not getattr(p, "thought", False))


class GeminiSession:
    """One google-genai async chat."""

    def __init__(self, chat: Any, model: str) -> None:
        self._chat = chat
        self.model = model
        self.closed = False

    async def send_prompt(self, text: str) -> str | None:
        response = await self._chat.send_message(text)
        candidates = response.candidates or []
        if candidates and candidates[0].content is not None:
            visible = _visible_text(candidates[0].content)
            if visible:
                return visible
        return response.text

    async def list_messages(self) -> list[ModelMessage]:
        return [
            ModelMessage(role=item.role or "", content=_visible_text(item))
            for item in self._chat.get_history(curated=False)
        ]

    async def close(self) -> None:
        # Chats share the client's connection pool; nothing to release per session.
        self.closed = True


class GeminiModelService:
    """``ModelService`` backed by ``genai.Client``.

    Owned by a single request: use it as an async context manager so the
    client's HTTP pool is closed when the request finishes.
    """

    def __init__(
        self,
        client: genai.Client | None = None,
        *,
        thinking_level: str | None = None,
        temperature: float | None = None,
    ) -> None:
        cfg = get_config()
        self._client = client or self._build_client()
        self._config = types.GenerateContentConfig(
            thinking_config=types.ThinkingConfig(thinking_level=thinking_level or cfg.default_thinking_level),
            temperature=temperature if temperature is not None else cfg.default_temperature,
        )

    @staticmethod
    def _build_client() -> genai.Client:
        """API key when configured, otherwise Vertex AI with application-default credentials."""
        cfg = get_config()
        if cfg.gemini_api_key:
            return genai.Client(api_key=cfg.gemini_api_key)
        if cfg.google_cloud_project:
            logger.info(
                "No GEMINI_API_KEY; using Vertex AI (project=%s, location=%s)",
                cfg.google_cloud_project,
                cfg.google_cloud_location,
            )
            return genai.Client(
                vertexai=True,
                project=cfg.google_cloud_project,
                location=cfg.google_cloud_location,
            )
        raise GenerationError(
            "No Gemini credentials: set GEMINI_API_KEY, or GOOGLE_CLOUD_PROJECT after "
            "'gcloud auth application-default login'"
        )

    async def start_session(self, model: str) -> GeminiSession:
        chat = self._client.aio.chats.create(model=model, config=self._config)
        return GeminiSession(chat, model)

    async def list_models(self) -> list[str]:
        names: list[str] = []
        async for item in await self._client.aio.models.list():
            actions = getattr(item, "supported_actions", None) or []
            if actions and "generateContent" not in actions:
                continue
            if item.name:
                names.append(item.name.removeprefix("models/"))
        return names

    async def aclose(self) -> None:
        await self._client.aio.aclose()

    async def __aenter__(self) -> GeminiModelService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def _last_assistant_message(session: ModelSession) -> str | None:
    messages = await session.list_messages()
    for message in reversed(messages):
        if message.role in ASSISTANT_ROLES and message.content.strip():
            return message.content
    return None


async def run_prompt(service: ModelService, prompt: str, model: str, timeout: float) -> str:
    """Send *prompt* once in a fresh session and return the reply text.

    The session is always closed, whatever happens. When the reply has no
    text the last assistant message of the transcript is used instead.

    Raises:
        GenerationError: on timeout, an empty reply, or any backend error.
    """
    try:
        session = await with_retry(lambda: service.start_session(model), label=f"start {model} session")
    except Exception as exc:
        raise GenerationError(f"Could not start a {model} session: {exc}") from exc

    try:
        async with asyncio.timeout(timeout):
            content = await session.send_prompt(prompt)
            if not content or not content.strip():
                content = await _last_assistant_message(session)
    except TimeoutError as exc:
        raise GenerationError(f"Model {model} did not respond within {timeout:g}s (timeout)") from exc
    except GenerationError:
        raise
    except Exception as exc:
        raise GenerationError(str(exc) or type(exc).__name__) from exc
    finally:
        try:
            await session.close()
        except Exception:
            logger.warning("Closing %s session failed", model, exc_info=True)

    if not content or not content.strip():
        raise GenerationError(f"Model {model} returned an empty response.")
    return content
