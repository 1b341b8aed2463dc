from __future__ import annotations

import base64
import json

import httpx
import openai
import pytest

from fixtures import OpenAIStub, make_settings, mc_payload, quiz_payload

from magic_mock.core.ai import MissingCredentialsError
from magic_mock.quizzer.errors import ProviderError, TranslationMismatch
from magic_mock.quizzer.provider import (
    OpenAIContentProvider,
    parse_json_payload,
)
from magic_mock.quizzer.request import build_request


def _provider(client: OpenAIStub, **kwargs) -> OpenAIContentProvider:
    return OpenAIContentProvider(model="test-model", client=client, **kwargs)


def test_parse_json_payload_accepts_fenced_json():
    content = '```json\n{"topic": "x", "questions": []}\n```'

    assert parse_json_payload(content) == {"topic": "x", "questions": []}


@pytest.mark.parametrize("content", ["", "   ", "```json\n```"])
def test_parse_json_payload_rejects_empty(content):
    with pytest.raises(ProviderError, match="empty"):
        parse_json_payload(content)


def test_parse_json_payload_rejects_invalid_json():
    with pytest.raises(ProviderError) as excinfo:
        parse_json_payload("{not json")

    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


def test_generate_sends_schema_and_json_mode():
    client = OpenAIStub()
    client.queue_response(json.dumps(quiz_payload(mc_payload())))
    provider = _provider(client, temperature=0.1, max_output_tokens=500)

    payload = provider.generate(build_request(make_settings()))

    assert payload["questions"][0]["correctAnswer"] == "Paris"
    call = client.calls[0]
    assert call["model"] == "test-model"
    assert call["temperature"] == 0.1
    assert call["max_tokens"] == 500
    assert call["response_format"] == {"type": "json_object"}
    system, user = call["messages"]
    assert '"questionText"' in system["content"]
    assert "Topic: Geography" in user["content"]


def test_generate_returns_non_object_payloads_for_validation():
    client = OpenAIStub()
    client.queue_response("[1, 2, 3]")

    assert _provider(client).generate(build_request(make_settings())) == [
        1,
        2,
        3,
    ]


def test_generate_attaches_pdf_as_file_part():
    client = OpenAIStub()
    client.queue_response(json.dumps(quiz_payload(mc_payload())))
    settings = make_settings(topic="notes.pdf", document_content="JVBERi0=")

    _provider(client).generate(build_request(settings))

    parts = client.calls[0]["messages"][1]["content"]
    assert parts[0]["type"] == "text"
    assert parts[1] == {
        "type": "file",
        "file": {
            "filename": "notes.pdf",
            "file_data": "data:application/pdf;base64,JVBERi0=",
        },
    }


def test_generate_inlines_text_documents():
    client = OpenAIStub()
    client.queue_response(json.dumps(quiz_payload(mc_payload())))
    encoded = base64.b64encode("Chlorophyll absorbs light.".encode()).decode()
    settings = make_settings(topic="notes.txt", document_content=encoded)

    _provider(client).generate(build_request(settings))

    parts = client.calls[0]["messages"][1]["content"]
    assert parts[1]["type"] == "text"
    assert "Chlorophyll absorbs light." in parts[1]["text"]


def test_generate_wraps_sdk_errors():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat")

    def boom(_kwargs):
        raise openai.APIConnectionError(request=request)

    provider = _provider(OpenAIStub(side_effect=boom))

    with pytest.raises(ProviderError) as excinfo:
        provider.generate(build_request(make_settings()))

    assert isinstance(excinfo.value.__cause__, openai.APIConnectionError)


def test_generate_rejects_response_without_choices():
    from types import SimpleNamespace

    provider = _provider(
        OpenAIStub(side_effect=lambda _kwargs: SimpleNamespace(choices=[]))
    )

    with pytest.raises(ProviderError, match="no content"):
        provider.generate(build_request(make_settings()))


def test_client_is_built_lazily_from_environment(openai_factory, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    provider = OpenAIContentProvider(model="m")
    assert openai_factory.instances == []

    with pytest.raises(ProviderError):
        provider.generate(build_request(make_settings()))

    assert openai_factory.last.init_kwargs == {"api_key": "sk-test"}


def test_missing_credentials_surface_before_any_request(openai_factory):
    provider = OpenAIContentProvider(model="m")

    with pytest.raises(ProviderError) as excinfo:
        provider.generate(build_request(make_settings()))
    assert isinstance(excinfo.value.__cause__, MissingCredentialsError)
    assert openai_factory.instances == []


def test_translate_preserves_order():
    client = OpenAIStub()
    client.queue_response(json.dumps({"translations": ["uno", "dos"]}))

    assert _provider(client).translate(["one", "two"], "Spanish") == [
        "uno",
        "dos",
    ]
    user = client.calls[0]["messages"][1]["content"]
    assert "into Spanish" in user
    assert '["one", "two"]' in user


def test_translate_empty_input_skips_the_provider():
    client = OpenAIStub()

    assert _provider(client).translate([], "Spanish") == []
    assert client.calls == []


def test_translate_length_mismatch_raises():
    client = OpenAIStub()
    client.queue_response(json.dumps({"translations": ["a", "b", "c", "d"]}))

    with pytest.raises(TranslationMismatch) as excinfo:
        _provider(client).translate(["q", "1", "2", "3", "4"], "Hindi")

    assert (excinfo.value.expected, excinfo.value.received) == (5, 4)


@pytest.mark.parametrize(
    "reply",
    [
        {"translations": "uno"},
        {"translations": ["uno", 2]},
        {"other": []},
        ["uno"],
    ],
)
def test_translate_rejects_malformed_payloads(reply):
    client = OpenAIStub()
    client.queue_response(json.dumps(reply))

    with pytest.raises(ProviderError, match="translations"):
        _provider(client).translate(["one"], "Spanish")
