"""
Chat-completions backend over requests.

Talks to any OpenAI-compatible ``{api_base}/chat/completions`` endpoint.
Failures are translated into the doctldr error hierarchy:

    connection error, timeout, 408/409/429/5xx,
    unparseable 200 response                     -> TransientBackendError
    401, 403, missing credential                 -> AuthError
    any other 4xx                                -> InvalidRequestError

The credential is read from the environment variable named by
``PipelineConfig.api_key_env`` and never appears in logs or messages.
"""

import os
import time

import requests

from ..config import PipelineConfig
from ..errors import AuthError, InvalidRequestError, TransientBackendError
from ..logging_config import debug_log
from .prompt import Prompt

TRANSIENT_STATUS_CODES = frozenset({408, 409, 429})
AUTH_STATUS_CODES = frozenset({401, 403})


class ChatCompletionBackend:
    """
    Issues one chat-completion request per call to complete().

    Safe to share between worker threads: it holds no per-request state.
    """

    def __init__(self, config: PipelineConfig):
        """
        Raises:
            AuthError: If the credential environment variable is unset or empty.
        """
        self.config = config
        self.endpoint = f"{config.api_base.rstrip('/')}/chat/completions"
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise AuthError(
                f"No API key found: set the {config.api_key_env} environment variable"
            )
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def complete(self, prompt: Prompt) -> str:
        """
        Send one request and return the summary text.

        Raises:
            TransientBackendError, AuthError, InvalidRequestError
        """
        payload = {
            "model": self.config.model,
            "messages": prompt.as_messages(),
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

        debug_log(f"[BACKEND] POST {self.endpoint} model={self.config.model} "
                  f"prompt={len(prompt.user)} chars")
        debug_log("[BACKEND] ===== PROMPT START =====")
        debug_log(prompt.user)
        debug_log("[BACKEND] ===== PROMPT END =====")

        start_time = time.time()
        try:
            response = requests.post(
                self.endpoint,
                json=payload,
                headers=self._headers,
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransientBackendError(
                f"Request timed out after {self.config.request_timeout} seconds"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransientBackendError(f"Cannot connect to {self.endpoint}") from e
        except requests.exceptions.RequestException as e:
            raise TransientBackendError(f"Request failed: {e}") from e

        self._raise_for_status(response)
        text = self._parse_summary(response)

        debug_log(f"[BACKEND] Response: {len(text)} chars in {time.time() - start_time:.2f}s")
        return text

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        detail = _error_detail(response)
        if status in AUTH_STATUS_CODES:
            raise AuthError(f"Backend rejected the credential (HTTP {status}){detail}", status)
        if status in TRANSIENT_STATUS_CODES or status >= 500:
            raise TransientBackendError(f"Backend returned HTTP {status}{detail}", status)
        if 400 <= status < 500:
            raise InvalidRequestError(f"Backend rejected the request (HTTP {status}){detail}", status)
        raise TransientBackendError(f"Unexpected HTTP {status} from backend", status)

    @staticmethod
    def _parse_summary(response: requests.Response) -> str:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TransientBackendError("Malformed response from backend") from e
        if not isinstance(content, str) or not content.strip():
            raise TransientBackendError("Backend returned an empty summary")
        return content.strip()


def _error_detail(response: requests.Response) -> str:
    """Short server-side reason for an error response, if it sent one."""
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return ""
    return f": {message}" if message else ""
