"""Content provider adapters for quiz generation and translation."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any, Mapping, Protocol, Sequence

from openai import OpenAIError

from ..core.ai import MissingCredentialsError
from ..core.ai import load_client as load_openai_client
from .errors import ProviderError, TranslationMismatch
from .request import (
    GenerationRequest,
    TRANSLATION_SCHEMA,
    build_translation_prompt,
    dump_schema,
)

__all__ = [
    "ContentProvider",
    "OpenAIContentProvider",
    "parse_json_payload",
]

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are Magic Mock, an expert quiz creator. Respond with a single JSON "
    "object that strictly adheres to this schema:\n{schema}"
)
_TRANSLATE_SYSTEM_PROMPT = (
    "You are a precise translator. Respond with a single JSON object that "
    "adheres to this schema:\n{schema}"
)
_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class ContentProvider(Protocol):
    """Protocol satisfied by generative content backends."""

    def generate(self, request: GenerationRequest) -> object:
        """Return the candidate quiz payload for ``request``."""

    def translate(
        self, texts: Sequence[str], target_language: str
    ) -> list[str]:
        """Return ``texts`` translated, same length and order."""


def parse_json_payload(content: str) -> Any:
    """Decode provider text as JSON, tolerating Markdown code fences."""

    text = (content or "").strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    if not text:
        raise ProviderError("Provider returned an empty response.")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProviderError(f"Provider returned invalid JSON: {exc}") from exc


class OpenAIContentProvider:
    """Adapter for OpenAI chat completions with JSON output."""

    def __init__(
        self,
        *,
        model: str,
        temperature: float = 0.4,
        max_output_tokens: int = 4096,
        request_timeout: int = 60,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = request_timeout
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                self._client = load_openai_client()
            except MissingCredentialsError as exc:
                raise ProviderError(str(exc)) from exc
        return self._client

    def generate(self, request: GenerationRequest) -> object:
        system = _SYSTEM_PROMPT.format(schema=request.schema_json)
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": _user_content(request)},
        ]
        logger.debug(
            "Requesting quiz generation",
            extra={
                "model": self._model,
                "has_document": request.document is not None,
            },
        )
        return parse_json_payload(self._complete(messages))

    def translate(
        self, texts: Sequence[str], target_language: str
    ) -> list[str]:
        items = [str(text) for text in texts]
        if not items:
            return []
        system = _TRANSLATE_SYSTEM_PROMPT.format(
            schema=dump_schema(TRANSLATION_SCHEMA, indent=None)
        )
        messages = [
            {"role": "system", "content": system},
            {
                "role": "user",
                "content": build_translation_prompt(items, target_language),
            },
        ]
        payload = parse_json_payload(self._complete(messages))
        translations = None
        if isinstance(payload, Mapping):
            translations = payload.get("translations")
        if not isinstance(translations, list) or not all(
            isinstance(item, str) for item in translations
        ):
            raise ProviderError(
                "Translation response did not contain a 'translations' list "
                "of strings."
            )
        if len(translations) != len(items):
            raise TranslationMismatch(len(items), len(translations))
        return translations

    def _complete(self, messages: list[dict[str, Any]]) -> str:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_output_tokens,
                response_format={"type": "json_object"},
                timeout=self._timeout,
            )
            content = response.choices[0].message.content
        except OpenAIError as exc:
            raise ProviderError(f"Provider request failed: {exc}") from exc
        except (AttributeError, IndexError) as exc:
            raise ProviderError("Provider response had no content.") from exc
        return (content or "").strip()


def _user_content(request: GenerationRequest) -> Any:
    document = request.document
    if document is None:
        return request.prompt
    parts: list[dict[str, Any]] = [{"type": "text", "text": request.prompt}]
    if document.media_type == "text/plain":
        try:
            text = base64.b64decode(document.data_base64).decode(
                "utf-8", errors="replace"
            )
        except (binascii.Error, ValueError) as exc:
            raise ProviderError(
                f"Document '{document.filename}' is not valid base64."
            ) from exc
        parts.append(
            {
                "type": "text",
                "text": f"Document ({document.filename}):\n{text}",
            }
        )
    else:
        parts.append(
            {
                "type": "file",
                "file": {
                    "filename": document.filename,
                    "file_data": document.data_url,
                },
            }
        )
    return parts
