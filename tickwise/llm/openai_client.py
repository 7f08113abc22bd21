"""
OpenAI chat completions client.

Endpoint:  POST https://api.openai.com/v1/chat/completions
Auth:      ``Authorization: Bearer <OPENAI_API_KEY>``

Only ``choices[0].message.content`` is read from the response.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar, Optional

if TYPE_CHECKING:
    from tickwise.config import LLMConfig

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = frozenset({"openai"})

MISSING_KEY_HINT = (
    "OpenAI API key is not set; the prompt was not sent. "
    "Pass --openai-api-key <KEY> or set OPENAI_API_KEY "
    "(in tickwise.env write OPENAI_API_KEY=sk-xxxxxxxx)."
)


class LLMResponseError(RuntimeError):
    """Raised when a 2xx response does not carry a message."""


def describe_status(status_code: int, body: str = "") -> str:
    """Human-readable explanation for a failed chat completion request."""
    if status_code == 400:
        return "Bad request (400). Check the model name and parameters."
    if status_code == 401:
        return "Authentication failed (401). The API key may be invalid or expired."
    if status_code == 403:
        return "Access denied (403). Missing permission or the feature is disabled."
    if status_code == 429:
        return "Rate limited (429). Wait a while and run again."
    if 500 <= status_code <= 599:
        return f"Temporary server failure ({status_code}). Retry later."
    return f"Request failed ({status_code}): {body}"


class OpenAIClient:
    """Minimal client for one-shot chat completions.

    Usage::

        client = OpenAIClient(api_key=config.llm.openai_api_key, model=config.llm.model)
        answer = client.send(prompt)
    """

    CHAT_URL: ClassVar[str] = "https://api.openai.com/v1/chat/completions"

    def __init__(self, api_key: str, model: str, timeout: float = 120.0) -> None:
        if not api_key.strip():
            raise ValueError("OpenAIClient requires a non-empty api_key.")
        self.api_key = api_key.strip()
        self.model = model
        self.timeout = timeout

    def send(self, prompt: str) -> str:
        """Post ``prompt`` as a single user message and return the reply text.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response (explained in the log first).
            httpx.RequestError:    On connection / timeout failures.
            LLMResponseError:      If the body is not JSON or has no message content.
        """
        import httpx

        resp = httpx.post(
            self.CHAT_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
            },
            timeout=self.timeout,
        )
        if resp.is_error:
            logger.error(describe_status(resp.status_code, resp.text))
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError as exc:
            raise LLMResponseError(f"Chat completion body is not JSON ({exc})") from exc
        return self._parse_response(data)

    def _parse_response(self, data: dict) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMResponseError(f"Unexpected chat completion payload ({exc!r})") from exc
        if not isinstance(content, str):
            raise LLMResponseError("Chat completion message content is not text.")
        return content


def deliver_prompt(prompt: str, config: "LLMConfig") -> Optional[str]:
    """Send ``prompt`` with the configured provider.

    Returns:
        The reply text, or ``None`` when no API key is configured.

    Raises:
        NotImplementedError: For any provider other than ``openai``.
    """
    provider = config.provider.strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise NotImplementedError(f"LLM provider '{config.provider}' is not implemented.")
    if not config.openai_api_key.strip():
        logger.warning(MISSING_KEY_HINT)
        return None
    client = OpenAIClient(api_key=config.openai_api_key, model=config.model)
    logger.info("Sending prompt (%d chars) to %s", len(prompt), config.model)
    return client.send(prompt)
