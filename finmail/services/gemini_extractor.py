"""
Gemini text-generation client for transaction extraction.

Uses LangChain + Gemini as an opaque prompt-in / text-out function.
Failures are classified so the batch loop can decide between backoff
and giving up on a batch.
"""

import enum
from typing import Callable, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_google_genai import ChatGoogleGenerativeAI

from finmail import config
from finmail.exceptions import GeminiError, RateLimitError, ServiceUnavailableError

GenerateFn = Callable[[str], str]

RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "resource exhausted", "rate limit", "quota")
UNAVAILABLE_MARKERS = ("503", "unavailable", "overloaded")


class ErrorClass(str, enum.Enum):
    """How the batch loop should react to a failed call."""
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    FATAL = "fatal"


def classify_error(error: BaseException) -> ErrorClass:
    """
    Map an exception from the text-generation call onto an ErrorClass.

    Typed errors win; otherwise HTTP status codes and message text are
    inspected, since the client library wraps API errors differently
    across versions.
    """
    if isinstance(error, RateLimitError):
        return ErrorClass.RATE_LIMITED
    if isinstance(error, ServiceUnavailableError):
        return ErrorClass.UNAVAILABLE

    code = getattr(error, "code", None) or getattr(error, "status_code", None)
    if code in (429, "429"):
        return ErrorClass.RATE_LIMITED
    if code in (503, "503"):
        return ErrorClass.UNAVAILABLE

    message = str(error).lower()
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return ErrorClass.RATE_LIMITED
    if any(marker in message for marker in UNAVAILABLE_MARKERS):
        return ErrorClass.UNAVAILABLE
    return ErrorClass.FATAL


def _get_llm(api_key: str, model: str) -> ChatGoogleGenerativeAI:
    """Get configured Gemini LLM instance."""
    return ChatGoogleGenerativeAI(
        model=model,
        google_api_key=api_key,
        temperature=0.1,
        max_output_tokens=8192,
        max_retries=0,  # the batch loop owns retries
    )


class GeminiClient:
    """Callable wrapper: prompt text in, raw response text out."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or config.GOOGLE_API_KEY
        if not self.api_key:
            raise GeminiError("GOOGLE_API_KEY not configured")
        self.model = model or config.GEMINI_MODEL
        self._chain = _get_llm(self.api_key, self.model) | StrOutputParser()

    def generate(self, prompt: str) -> str:
        return self._chain.invoke(prompt)

    __call__ = generate
