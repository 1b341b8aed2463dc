"""Provider-agnostic generation requests built from quiz settings.

Nothing here performs IO; the same settings always produce the same request.
The embedded rules are hints for the provider, validation still happens in
``validator`` once the candidate comes back.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from .models import QuestionKind, QuestionType, QuizSettings

__all__ = [
    "DEFAULT_LANGUAGE",
    "QUIZ_SCHEMA",
    "TRANSLATION_SCHEMA",
    "DocumentPart",
    "GenerationRequest",
    "GenerationRule",
    "build_request",
    "build_translation_prompt",
    "dump_schema",
    "media_type_for",
]

DEFAULT_LANGUAGE = "English"

_MEDIA_TYPES = {
    "pdf": "application/pdf",
    "docx": (
        "application/vnd.openxmlformats-officedocument"
        ".wordprocessingml.document"
    ),
    "txt": "text/plain",
}
_FALLBACK_MEDIA_TYPE = "application/octet-stream"


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


QUIZ_SCHEMA: Mapping[str, Any] = _freeze(
    {
        "type": "object",
        "properties": {
            "topic": {"type": "string"},
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "questionText": {"type": "string"},
                        "questionType": {
                            "type": "string",
                            "enum": [kind.value for kind in QuestionKind],
                        },
                        "options": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": (
                                "An array of 4 options for multiple_choice, "
                                "or an empty array for fill_in_the_blank."
                            ),
                        },
                        "correctAnswer": {"type": "string"},
                        "explanation": {"type": "string"},
                    },
                    "required": [
                        "questionText",
                        "questionType",
                        "options",
                        "correctAnswer",
                        "explanation",
                    ],
                },
            },
        },
        "required": ["topic", "questions"],
    }
)

TRANSLATION_SCHEMA: Mapping[str, Any] = _freeze(
    {
        "type": "object",
        "properties": {
            "translations": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["translations"],
    }
)


class GenerationRule(Enum):
    FOUR_OPTIONS = "four_options"
    EMPTY_OPTIONS_FOR_BLANKS = "empty_options_for_blanks"
    MIXED_MEANS_COMBINATION = "mixed_means_combination"
    TARGET_LANGUAGE = "target_language"
    DOCUMENT_EXCLUSIVE = "document_exclusive"

    def render(self, language: str) -> str:
        if self is GenerationRule.FOUR_OPTIONS:
            return (
                'For any question where `questionType` is "multiple_choice": '
                "the `options` array MUST contain EXACTLY 4 unique, non-empty "
                "strings, and `correctAnswer` MUST be an exact match to one "
                "of those 4 strings."
            )
        if self is GenerationRule.EMPTY_OPTIONS_FOR_BLANKS:
            return (
                'For any question where `questionType` is '
                '"fill_in_the_blank": the `options` array MUST be an empty '
                "array ([])."
            )
        if self is GenerationRule.MIXED_MEANS_COMBINATION:
            return (
                "If the requested question type is 'Mixed', generate a "
                "combination of both types, following the rules for each "
                "type individually."
            )
        if self is GenerationRule.TARGET_LANGUAGE:
            return (
                "The entire quiz (questions, options, answers, explanations) "
                f"MUST be in the specified language: {language}."
            )
        return (
            "The quiz MUST be based exclusively on the attached document. "
            "Do not use outside knowledge."
        )


_BASE_RULES = (
    GenerationRule.FOUR_OPTIONS,
    GenerationRule.EMPTY_OPTIONS_FOR_BLANKS,
    GenerationRule.MIXED_MEANS_COMBINATION,
    GenerationRule.TARGET_LANGUAGE,
)


@dataclass(frozen=True)
class DocumentPart:
    """Raw document bytes attached to a generation request."""

    filename: str
    media_type: str
    data_base64: str

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data_base64}"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    schema: Mapping[str, Any]
    rules: tuple[GenerationRule, ...]
    language: str
    document: DocumentPart | None = None

    @property
    def schema_json(self) -> str:
        return dump_schema(self.schema)


def dump_schema(schema: Mapping[str, Any], *, indent: int | None = 2) -> str:
    """Render a frozen schema constant as JSON text."""

    return json.dumps(_thaw(schema), indent=indent)


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


def media_type_for(filename: str) -> str:
    """Infer the media type of an uploaded document from its extension."""

    if "." not in filename:
        return _FALLBACK_MEDIA_TYPE
    extension = filename.rsplit(".", 1)[-1].lower()
    return _MEDIA_TYPES.get(extension, _FALLBACK_MEDIA_TYPE)


def build_request(settings: QuizSettings) -> GenerationRequest:
    """Turn ``settings`` into a ``GenerationRequest``."""

    language = settings.language.strip() or DEFAULT_LANGUAGE
    rules = _BASE_RULES
    document = None
    if settings.document_content:
        rules = rules + (GenerationRule.DOCUMENT_EXCLUSIVE,)
        document = DocumentPart(
            filename=settings.topic,
            media_type=media_type_for(settings.topic),
            data_base64=settings.document_content,
        )

    label = "Document" if document else "Topic"
    topic_line = f"{label}: {settings.topic}"
    rule_lines = "\n".join(
        f"{number}. {rule.render(language)}"
        for number, rule in enumerate(rules, start=1)
    )
    prompt = (
        "Generate a quiz based on the following settings. The output MUST be "
        "a valid JSON object that strictly adheres to the provided schema.\n\n"
        "Settings:\n"
        f"- {topic_line}\n"
        f"- Number of Questions: {settings.num_questions}\n"
        f"- Question Types to Generate: {settings.question_type.value}\n"
        f"- Difficulty: {settings.difficulty.value}\n"
        f"- Language: {language}\n\n"
        f"Output rules:\n{rule_lines}\n"
    )
    if settings.question_type is QuestionType.MULTIPLE_CHOICE:
        prompt += "\nUse only multiple_choice questions.\n"
    elif settings.question_type is QuestionType.FILL_IN_BLANK:
        prompt += "\nUse only fill_in_the_blank questions.\n"

    return GenerationRequest(
        prompt=prompt,
        schema=QUIZ_SCHEMA,
        rules=rules,
        language=language,
        document=document,
    )


def build_translation_prompt(texts: Sequence[str], language: str) -> str:
    """Prompt asking for an order-preserving batch translation."""

    return (
        f"Translate each of the following text snippets into {language}.\n"
        'Respond with a single JSON object containing a "translations" key, '
        "which holds an array of the translated strings. The order of the "
        "translated strings MUST correspond exactly to the order of the "
        "input text snippets. Do not add any explanations or other text "
        "outside of the JSON object.\n\n"
        f"Input Texts:\n{json.dumps(list(texts), ensure_ascii=False)}"
    )
