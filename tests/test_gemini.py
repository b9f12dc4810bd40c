import os
import base64
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from google.genai import types

from hellenika.gemini import (
    call_gemini,
    generate_image,
    parse_data_uri,
    strip_fences,
    to_data_uri,
    GenerationError,
)


def make_client(mock_genai, response):
    client = MagicMock()
    client.models.generate_content.return_value = response
    mock_genai.Client.return_value = client
    return client


def test_strip_fences():
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('```\n[1, 2]\n```') == "[1, 2]"
    assert strip_fences('  {"a": 1}  ') == '{"a": 1}'


def test_call_gemini_parses_fenced_json():
    with patch("hellenika.gemini.genai") as mock_genai, patch.dict(
        os.environ, {"GOOGLE_API_KEY": "fake_key"}
    ):
        client = make_client(
            mock_genai, SimpleNamespace(text='```json\n{"lemma": "λόγος"}\n```')
        )

        result = call_gemini("Gloss λόγος")

        assert result == {"lemma": "λόγος"}
        mock_genai.Client.assert_called_with(api_key="fake_key")
        _, kwargs = client.models.generate_content.call_args
        assert kwargs["contents"] == "Gloss λόγος"
        assert kwargs["config"].response_mime_type == "application/json"


def test_call_gemini_missing_key():
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(GenerationError, match="Google API Key missing"):
            call_gemini("anything")


def test_call_gemini_empty_response():
    with patch("hellenika.gemini.genai") as mock_genai, patch.dict(
        os.environ, {"GOOGLE_API_KEY": "fake_key"}
    ):
        make_client(mock_genai, SimpleNamespace(text=""))
        with pytest.raises(GenerationError, match="Empty response"):
            call_gemini("anything")


def test_call_gemini_invalid_json():
    with patch("hellenika.gemini.genai") as mock_genai, patch.dict(
        os.environ, {"GOOGLE_API_KEY": "fake_key"}
    ):
        make_client(mock_genai, SimpleNamespace(text='{"lemma": '))
        with pytest.raises(GenerationError, match="invalid JSON"):
            call_gemini("anything")


def test_data_uri_helpers():
    uri = to_data_uri("image/png", b"\x89PNG")
    assert uri == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
    assert parse_data_uri(uri) == ("image/png", b"\x89PNG")

    with pytest.raises(ValueError):
        parse_data_uri("https://example.org/image.png")


def image_response(*parts):
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))]
    )


def test_generate_image_returns_first_inline_image():
    text_part = SimpleNamespace(text="Here you go", inline_data=None)
    image_part = SimpleNamespace(
        text=None, inline_data=SimpleNamespace(data=b"img", mime_type="image/png")
    )

    with patch("hellenika.gemini.genai") as mock_genai, patch.dict(
        os.environ, {"GOOGLE_API_KEY": "fake_key"}
    ):
        client = make_client(mock_genai, image_response(text_part, image_part))

        uri = generate_image("a running horse")

        assert uri == to_data_uri("image/png", b"img")
        _, kwargs = client.models.generate_content.call_args
        assert kwargs["contents"] == ["a running horse"]
        assert kwargs["config"].response_modalities == ["TEXT", "IMAGE"]


def test_generate_image_sends_reference_first():
    image_part = SimpleNamespace(inline_data=SimpleNamespace(data=b"next", mime_type="image/png"))
    previous = to_data_uri("image/png", b"previous")

    with patch("hellenika.gemini.genai") as mock_genai, patch.dict(
        os.environ, {"GOOGLE_API_KEY": "fake_key"}
    ):
        client = make_client(mock_genai, image_response(image_part))

        generate_image("the horse again", reference_uri=previous)

        _, kwargs = client.models.generate_content.call_args
        contents = kwargs["contents"]
        assert isinstance(contents[0], types.Part)
        assert contents[0].inline_data.data == b"previous"
        assert contents[1] == "the horse again"


def test_generate_image_without_image_raises():
    text_part = SimpleNamespace(text="I cannot draw that", inline_data=None)

    with patch("hellenika.gemini.genai") as mock_genai, patch.dict(
        os.environ, {"GOOGLE_API_KEY": "fake_key"}
    ):
        make_client(mock_genai, image_response(text_part))
        with pytest.raises(GenerationError, match="No image was generated"):
            generate_image("nothing")
