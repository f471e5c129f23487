"""
Tests for ChatCompletionBackend.

HTTP is never performed: requests.post is patched and fed fake responses.

Tests cover:
- Credential lookup
- Request payload and headers
- Status code classification (transient / auth / invalid request)
- Malformed responses
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from doctldr.config import PipelineConfig
from doctldr.errors import AuthError, InvalidRequestError, TransientBackendError
from doctldr.summarization.backend import ChatCompletionBackend
from doctldr.summarization.prompt import build_prompt

SECRET = "sk-test-not-a-real-key"


def fake_response(status_code=200, payload=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


def ok_payload(content="A summary."):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def config():
    return PipelineConfig(model="test-model", max_tokens=256, api_base="https://llm.example/v1/")


@pytest.fixture
def backend(config, monkeypatch):
    monkeypatch.setenv(config.api_key_env, SECRET)
    return ChatCompletionBackend(config)


@pytest.fixture
def prompt():
    return build_prompt("Document body.", budget_chars=1000)


class TestCredential:
    """Test API key handling."""

    def test_missing_key_raises_auth_error(self, config, monkeypatch):
        monkeypatch.delenv(config.api_key_env, raising=False)
        with pytest.raises(AuthError, match=config.api_key_env):
            ChatCompletionBackend(config)

    def test_custom_key_variable(self, monkeypatch):
        config = PipelineConfig(api_key_env="DOCTLDR_TEST_KEY")
        monkeypatch.setenv("DOCTLDR_TEST_KEY", SECRET)
        backend = ChatCompletionBackend(config)
        assert backend.endpoint == "https://api.openai.com/v1/chat/completions"


class TestRequest:
    """Test the outgoing request."""

    def test_payload_and_headers(self, backend, prompt):
        with patch("doctldr.summarization.backend.requests.post",
                   return_value=fake_response(payload=ok_payload("  Done.  "))) as post:
            assert backend.complete(prompt) == "Done."

        args, kwargs = post.call_args
        assert args[0] == "https://llm.example/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == f"Bearer {SECRET}"
        assert kwargs["json"] == {
            "model": "test-model",
            "messages": prompt.as_messages(),
            "max_tokens": 256,
            "temperature": 0.3,
        }
        assert kwargs["timeout"] == backend.config.request_timeout


class TestErrorClassification:
    """Test mapping of failures onto the error hierarchy."""

    @pytest.mark.parametrize("status", [408, 409, 429, 500, 502, 503])
    def test_transient_statuses(self, backend, prompt, status):
        with patch("doctldr.summarization.backend.requests.post",
                   return_value=fake_response(status, {"error": {"message": "busy"}})):
            with pytest.raises(TransientBackendError) as exc_info:
                backend.complete(prompt)
        assert exc_info.value.status_code == status
        assert "busy" in str(exc_info.value)

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, backend, prompt, status):
        with patch("doctldr.summarization.backend.requests.post",
                   return_value=fake_response(status, {})):
            with pytest.raises(AuthError) as exc_info:
                backend.complete(prompt)
        assert SECRET not in str(exc_info.value)

    @pytest.mark.parametrize("status", [400, 404, 422])
    def test_invalid_request_statuses(self, backend, prompt, status):
        with patch("doctldr.summarization.backend.requests.post",
                   return_value=fake_response(status, json_error=True)):
            with pytest.raises(InvalidRequestError):
                backend.complete(prompt)

    @pytest.mark.parametrize("exc", [
        requests.exceptions.Timeout("slow"),
        requests.exceptions.ConnectionError("refused"),
    ])
    def test_network_errors_are_transient(self, backend, prompt, exc):
        with patch("doctldr.summarization.backend.requests.post", side_effect=exc):
            with pytest.raises(TransientBackendError):
                backend.complete(prompt)

    @pytest.mark.parametrize("response", [
        fake_response(json_error=True),
        fake_response(payload={"choices": []}),
        fake_response(payload={"unexpected": True}),
        fake_response(payload=ok_payload("   ")),
        fake_response(payload=ok_payload(None)),
    ])
    def test_malformed_success_is_transient(self, backend, prompt, response):
        with patch("doctldr.summarization.backend.requests.post", return_value=response):
            with pytest.raises(TransientBackendError):
                backend.complete(prompt)
