"""Text generation through third-party LLM APIs."""

from __future__ import annotations

import base64
import importlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from config.settings import AppConfig, DEFAULT_MODELS

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GenerationError(RuntimeError):
    """Raised when a generation call does not produce usable text."""


@dataclass(slots=True)
class Attachment:
    """Binary content sent alongside the instruction (e.g. a scanned page)."""

    data: bytes
    mime_type: str


@dataclass(slots=True)
class GenerationRequest:
    """Information passed to generation backends."""

    prompt: str
    tier: str = "fast"
    attachment: Optional[Attachment] = None
    response_mime_type: Optional[str] = None
    thinking_budget: Optional[int] = None


BackendCallable = Callable[[GenerationRequest], str]


class GenerationClient:
    """Interface to Gemini/GPT/Claude text generation."""

    def __init__(self, config: AppConfig, http_client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._backends: Dict[str, BackendCallable] = {}
        self.warnings: list[str] = []
        self._http = http_client
        self._owns_http = http_client is None
        self._auto_register_backends()

    def register_backend(self, name: str, backend: BackendCallable) -> None:
        """Register a generation backend."""
        self._backends[name.lower()] = backend

    def clear_backends(self) -> None:
        """Remove all backends (mainly for tests)."""
        self._backends.clear()

    def has_backend(self, name: str) -> bool:
        """Return True when backend exists."""
        return name.lower() in self._backends

    def available_backends(self) -> list[str]:
        """Return the list of registered backends ordered by preference."""
        priority = {"gemini": 0, "gpt": 1, "claude": 2}
        return sorted(
            (backend for backend in self._backends.keys()),
            key=lambda item: (priority.get(item, 99), item),
        )

    def default_backend(self) -> Optional[str]:
        """Return the configured backend if registered, else the preferred one."""
        preferred = (self.config.preferred_backend or "").lower()
        if preferred and preferred in self._backends:
            return preferred
        choices = self.available_backends()
        return choices[0] if choices else None

    def generate(self, request: GenerationRequest, backend: Optional[str] = None) -> str:
        """Run ``request`` on a backend and return the response text."""
        name = (backend or self.default_backend() or "").lower()
        handler = self._backends.get(name)
        if handler is None:
            details = "; ".join(self.warnings)
            message = f"Generation backend '{name or 'none'}' is not available"
            raise GenerationError(f"{message}: {details}" if details else message)

        try:
            text = handler(request)
        except GenerationError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise GenerationError(f"{name} backend failed: {exc}") from exc

        if not isinstance(text, str) or not text.strip():
            raise GenerationError(f"{name} backend returned an empty response")
        return text

    def close(self) -> None:
        """Release the HTTP client created by this instance."""
        if self._http is not None and self._owns_http:
            self._http.close()

    # Internal helpers ---------------------------------------------------------
    def _model_for(self, prefix: str, tier: str) -> str:
        key = f"{prefix}_model_{'pro' if tier == 'pro' else 'fast'}"
        return self.config.metadata.get(key) or DEFAULT_MODELS[key]

    def _auto_register_backends(self) -> None:
        """Register backends automatically when keys and dependencies are available."""
        self._register_gemini_backend()
        self._register_openai_backend()
        self._register_claude_backend()

    def _register_gemini_backend(self) -> None:
        if not self.config.gemini_key:
            return
        if self._http is None:
            # No local timeout: generation is bounded only by the service itself.
            self._http = httpx.Client(timeout=None)
        base_url = self.config.metadata.get("gemini_base_url", GEMINI_BASE_URL).rstrip("/")

        def _gemini_backend(request: GenerationRequest) -> str:
            parts: List[Dict[str, Any]] = []
            if request.attachment is not None:
                parts.append(
                    {
                        "inline_data": {
                            "mime_type": request.attachment.mime_type,
                            "data": base64.b64encode(request.attachment.data).decode("ascii"),
                        }
                    }
                )
            parts.append({"text": request.prompt})
            payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}

            generation_config: Dict[str, Any] = {}
            if request.response_mime_type:
                generation_config["responseMimeType"] = request.response_mime_type
            if request.thinking_budget is not None:
                generation_config["thinkingConfig"] = {"thinkingBudget": int(request.thinking_budget)}
            if generation_config:
                payload["generationConfig"] = generation_config

            model = self._model_for("gemini", request.tier)
            assert self._http is not None  # For type checkers
            response = self._http.post(
                f"{base_url}/models/{model}:generateContent",
                params={"key": self.config.gemini_key},
                json=payload,
            )
            response.raise_for_status()
            return self._extract_gemini_text(response.json())

        self.register_backend("gemini", _gemini_backend)

    def _extract_gemini_text(self, data: Any) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError(f"Unexpected Gemini response: {data!r}"[:500]) from exc
        texts = [part.get("text", "") for part in parts if isinstance(part, dict) and not part.get("thought")]
        joined = "".join(texts).strip()
        if not joined:
            raise GenerationError("Gemini response contains no text")
        return joined

    def _register_openai_backend(self) -> None:
        if not self.config.openai_key:
            return
        try:
            openai_module = importlib.import_module("openai")
        except ImportError as exc:
            self.warnings.append(f"Cannot import openai: {exc}")
            return

        base_url = self.config.metadata.get("openai_base_url")
        client_kwargs: Dict[str, Any] = {"api_key": self.config.openai_key, "timeout": None}
        if base_url:
            client_kwargs["base_url"] = base_url
        client = openai_module.OpenAI(**client_kwargs)

        def _gpt_backend(request: GenerationRequest) -> str:
            content: Any = request.prompt
            if request.attachment is not None:
                if not request.attachment.mime_type.startswith("image/"):
                    raise GenerationError("GPT backend accepts image attachments only")
                encoded = base64.b64encode(request.attachment.data).decode("ascii")
                content = [
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{request.attachment.mime_type};base64,{encoded}"},
                    },
                    {"type": "text", "text": request.prompt},
                ]
            kwargs: Dict[str, Any] = {}
            if request.response_mime_type == "application/json":
                kwargs["response_format"] = {"type": "json_object"}

            completion = client.chat.completions.create(
                model=self._model_for("openai", request.tier),
                messages=[{"role": "user", "content": content}],
                **kwargs,
            )
            if not completion.choices:
                raise GenerationError("GPT response contains no choices")
            return (completion.choices[0].message.content or "").strip()

        self.register_backend("gpt", _gpt_backend)

    def _register_claude_backend(self) -> None:
        if not self.config.anthropic_key:
            return
        try:
            anthropic_module = importlib.import_module("anthropic")
        except ImportError as exc:  # pragma: no cover - optional dependency
            self.warnings.append(f"Cannot import anthropic: {exc}")
            return

        client = anthropic_module.Anthropic(api_key=self.config.anthropic_key)

        def _claude_backend(request: GenerationRequest) -> str:
            blocks: List[Dict[str, Any]] = []
            if request.attachment is not None:
                mime_type = request.attachment.mime_type
                source = {
                    "type": "base64",
                    "media_type": mime_type,
                    "data": base64.b64encode(request.attachment.data).decode("ascii"),
                }
                if mime_type.startswith("image/"):
                    blocks.append({"type": "image", "source": source})
                elif mime_type == "application/pdf":
                    blocks.append({"type": "document", "source": source})
                else:
                    raise GenerationError(f"Claude backend cannot read {mime_type} attachments")
            blocks.append({"type": "text", "text": request.prompt})

            message = client.messages.create(
                model=self._model_for("claude", request.tier),
                max_tokens=8192,
                messages=[{"role": "user", "content": blocks}],
            )
            return "".join(
                getattr(block, "text", "")
                for block in message.content
                if getattr(block, "type", "") == "text"
            ).strip()

        self.register_backend("claude", _claude_backend)
