"""
Image LLM Client interface for reading ticket details from an image.
Supports StubImageLLMClient (offline) and OpenRouterImageLLMClient (real provider).
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import requests

from ticketcal.backoff import ExponentialBackoff
from ticketcal.errors import QueryError
from ticketcal.logging_helper import Log

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_RETRIES = 2
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

TICKET_PROMPT = (
    "Extract the following information from the image of this ticket and answer "
    "using exactly these lines, without any other text or formatting:\n"
    "Event name: <name>\n"
    "Location of the event: <location>\n"
    "Date and time: <HH:DD:MM:YYYY>\n"
    "(if the event takes place over multiple days:)\n"
    "Days during which the ticket is valid: <DD:MM to DD:MM>"
)


class ImageLLMClient(ABC):
    """Abstract base class for image LLM clients."""

    @abstractmethod
    def complete(self, prompt: str, image_data_uri: str) -> str:
        """
        Send one prompt plus one image and return the text answer.

        Args:
            prompt: Instruction text
            image_data_uri: "data:image/jpeg;base64,..." URI of the ticket page

        Returns:
            The model's text completion

        Raises:
            QueryError: if the request fails or the response has an unsupported shape
        """


class StubImageLLMClient(ImageLLMClient):
    """
    Stub LLM client for offline runs and tests.
    Returns a fixed answer in the same line format the real model is asked for.
    """

    DEFAULT_RESPONSE = (
        "Event name: Sample Concert\n"
        "Location of the event: Main Hall\n"
        "Date and time: 20:15:06:2025"
    )

    def __init__(self, response: Optional[str] = None):
        self.response = self.DEFAULT_RESPONSE if response is None else response
        self.calls = 0

    def complete(self, prompt: str, image_data_uri: str) -> str:
        Log.section("Stub LLM Client")
        Log.info("Using stub LLM client (offline mode)")
        self.calls += 1
        Log.kv({"stage": "llm", "provider": "stub", "result": "success"})
        return self.response


class OpenRouterImageLLMClient(ImageLLMClient):
    """
    OpenRouter chat completions client (OpenAI-compatible API).
    Sends one non-streaming request per ticket with a bounded timeout and
    retries transient failures with exponential backoff.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        session: Optional[requests.Session] = None,
        backoff: Optional[ExponentialBackoff] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            model: Model identifier, e.g. "openai/gpt-4o-mini"
            base_url: API root; "/chat/completions" is appended
            timeout: Per-request timeout in seconds
            max_retries: Extra attempts after a transient failure
        """
        self.api_key = api_key
        self.model = model
        self.api_url = base_url.rstrip('/') + "/chat/completions"
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.backoff = backoff or ExponentialBackoff()
        self._sleep = sleep

    def _payload(self, prompt: str, image_data_uri: str) -> dict:
        return {
            "model": self.model,
            "stream": False,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "text",
                            "text": prompt
                        },
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": image_data_uri
                            }
                        }
                    ]
                }
            ],
        }

    def _post(self, payload: dict) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        self.backoff.reset()
        while True:
            try:
                response = self.session.post(
                    self.api_url,
                    headers=headers,
                    json=payload,
                    timeout=self.timeout
                )
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if self.backoff.attempt >= self.max_retries:
                    Log.kv({"stage": "llm", "provider": "openrouter", "result": "failed", "reason": "transport", "error": str(e)})
                    raise QueryError(f"Model request failed: {e}") from e
                reason = str(e)
            else:
                Log.info(f"API response status: {response.status_code}")
                if response.status_code not in TRANSIENT_STATUS_CODES or self.backoff.attempt >= self.max_retries:
                    return response
                reason = f"HTTP {response.status_code}"

            delay = self.backoff.next_delay()
            Log.warn(f"Transient model error ({reason}), retry {self.backoff.attempt}/{self.max_retries} in {delay:.1f}s")
            self._sleep(delay)

    def complete(self, prompt: str, image_data_uri: str) -> str:
        Log.section("OpenRouter LLM Client")
        Log.info(f"Using OpenRouter API ({self.model})")
        Log.kv({
            "stage": "llm",
            "provider": "openrouter",
            "model": self.model,
            "status": "requesting",
            "image_length": len(image_data_uri)
        })

        try:
            response = self._post(self._payload(prompt, image_data_uri))
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            Log.error(f"OpenRouter API request failed: {e}")
            Log.kv({"stage": "llm", "provider": "openrouter", "result": "failed", "reason": "api_error", "error": str(e)})
            raise QueryError(f"Model request failed: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            raise QueryError(f"Model response is not JSON: {response.text[:200]}") from e

        choices = result.get('choices') if isinstance(result, dict) else None
        if not choices:
            Log.kv({"stage": "llm", "provider": "openrouter", "result": "failed", "reason": "no_choices"})
            raise QueryError("Model response has no choices")

        content = (choices[0].get('message') or {}).get('content')
        if not isinstance(content, str):
            Log.kv({"stage": "llm", "provider": "openrouter", "result": "failed", "reason": "unsupported_content"})
            raise QueryError(f"Unsupported message content type: {type(content).__name__}")

        Log.info(f"Model response: {content!r}")
        Log.kv({"stage": "llm", "provider": "openrouter", "result": "success", "chars": len(content)})
        return content


def get_llm_client(settings) -> ImageLLMClient:
    """
    Factory function to get the appropriate LLM client.
    Uses the stub client when settings.use_stub is set.

    Args:
        settings: Settings from settings_manager.load_settings()

    Returns:
        ImageLLMClient instance
    """
    if settings.use_stub:
        Log.info("TICKETCAL_USE_STUB flag set - using stub client")
        return StubImageLLMClient()

    Log.info(f"Using OpenRouter client with model {settings.model}")
    return OpenRouterImageLLMClient(
        api_key=settings.api_key,
        model=settings.model,
        base_url=settings.base_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
    )
