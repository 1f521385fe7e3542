import asyncio
import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.app import model_client
from api.app.model_client import (
    MistralTextModel,
    ModelError,
    build_messages,
    get_api_key,
    response_text,
)


def _sdk_client(**complete_kwargs):
    client = MagicMock()
    client.__aenter__.return_value = client
    client.__aexit__.return_value = False
    client.chat.complete_async = AsyncMock(**complete_kwargs)
    return client


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def no_keys(monkeypatch):
    monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
    monkeypatch.delenv("OCR_API_KEY", raising=False)


def test_primary_key_wins(no_keys, monkeypatch):
    monkeypatch.setenv("MISTRAL_API_KEY", "primary")
    monkeypatch.setenv("OCR_API_KEY", "secondary")
    assert get_api_key() == "primary"


def test_fallback_key_is_used(no_keys, monkeypatch):
    monkeypatch.setenv("OCR_API_KEY", "secondary")
    assert get_api_key() == "secondary"


def test_no_key_is_empty(no_keys):
    assert get_api_key() == ""


def test_text_only_message():
    assert build_messages("hello") == [
        {"role": "user", "content": [{"type": "text", "text": "hello"}]}
    ]


def test_image_is_sent_as_png_data_uri():
    messages = build_messages("read this", b"\x89PNGdata")
    parts = messages[0]["content"]

    assert parts[0] == {"type": "text", "text": "read this"}
    assert parts[1]["type"] == "image_url"
    assert parts[1]["image_url"] == "data:image/png;base64," + base64.b64encode(b"\x89PNGdata").decode()


def test_response_text_is_trimmed():
    assert response_text(_completion("  hello world \n")) == "hello world"


def test_response_text_joins_text_chunks():
    chunks = [SimpleNamespace(text="Hello "), SimpleNamespace(type="image_url"), SimpleNamespace(text="there")]
    assert response_text(_completion(chunks)) == "Hello there"


@pytest.mark.parametrize("response", [None, SimpleNamespace(choices=[]), SimpleNamespace(choices=None)])
def test_no_response(response):
    with pytest.raises(ModelError, match="No response received"):
        response_text(response)


@pytest.mark.parametrize("content", [None, "", "   "])
def test_empty_response(content):
    with pytest.raises(ModelError, match="empty response"):
        response_text(_completion(content))


def test_generate_without_key_fails_before_any_call(no_keys, monkeypatch):
    factory = MagicMock()
    monkeypatch.setattr(model_client, "Mistral", factory)

    with pytest.raises(ModelError, match="Missing MISTRAL_API_KEY"):
        asyncio.run(MistralTextModel().generate("prompt"))
    factory.assert_not_called()


def test_generate_calls_chat_once(no_keys, monkeypatch):
    monkeypatch.setenv("MISTRAL_API_KEY", "secret")
    monkeypatch.setenv("MISTRAL_MODEL", "pixtral-12b-latest")
    client = _sdk_client(return_value=_completion(" transcription "))
    factory = MagicMock(return_value=client)
    monkeypatch.setattr(model_client, "Mistral", factory)

    text = asyncio.run(MistralTextModel().generate("prompt", b"png"))

    assert text == "transcription"
    factory.assert_called_once_with(api_key="secret")
    client.chat.complete_async.assert_awaited_once()
    kwargs = client.chat.complete_async.call_args.kwargs
    assert kwargs["model"] == "pixtral-12b-latest"
    assert kwargs["messages"] == build_messages("prompt", b"png")
    client.__aexit__.assert_awaited_once()


def test_transport_errors_propagate(no_keys, monkeypatch):
    monkeypatch.setenv("MISTRAL_API_KEY", "secret")
    client = _sdk_client(side_effect=ConnectionError("boom"))
    monkeypatch.setattr(model_client, "Mistral", MagicMock(return_value=client))

    with pytest.raises(ConnectionError, match="boom"):
        asyncio.run(MistralTextModel().generate("prompt"))
    client.__aexit__.assert_awaited_once()
