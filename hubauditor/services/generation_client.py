"""
Generation Client

Thin wrapper around the Anthropic Messages API that turns a prompt into
report text. One request in, text or a typed GenerationError out: the
client never retries (the SDK's own retries are disabled too), so callers
decide whether to run the audit again.

Failure mapping:
- 401 -> invalid_credentials
- 429 -> rate_limited
- 5xx or connection failure -> upstream_error
- anything else -> unknown

Usage:
    client = GenerationClient.from_settings(settings)
    try:
        text = await client.generate_analysis(prompt)
    except GenerationError as e:
        ...  # e.kind is a GenerationErrorKind
    finally:
        await client.close()
"""

import logging
from typing import Optional

import anthropic

from hubauditor.core.config import Settings
from hubauditor.models.enums import GenerationErrorKind


logger = logging.getLogger(__name__)

DEFAULT_MODEL: str = "claude-sonnet-4-5-20250929"
DEFAULT_MAX_TOKENS: int = 4096
PING_MAX_TOKENS: int = 10

ERROR_MESSAGES = {
    GenerationErrorKind.INVALID_CREDENTIALS: "Invalid Claude API key. Please check your credentials.",
    GenerationErrorKind.RATE_LIMITED: "Claude API rate limit exceeded. Please try again later.",
    GenerationErrorKind.UPSTREAM_ERROR: "Claude API server error. Please try again later.",
    GenerationErrorKind.UNKNOWN: "An unexpected error occurred while generating AI analysis.",
}


class GenerationError(Exception):
    """A classified failure from the generation service."""

    def __init__(
        self,
        kind: GenerationErrorKind,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.message = message or ERROR_MESSAGES[kind]
        self.status_code = status_code
        super().__init__(self.message)


def classify_error(error: Exception) -> GenerationError:
    """Map an SDK exception onto the GenerationErrorKind taxonomy."""
    if isinstance(error, anthropic.APIStatusError):
        status = error.status_code
        if status == 401:
            kind = GenerationErrorKind.INVALID_CREDENTIALS
        elif status == 429:
            kind = GenerationErrorKind.RATE_LIMITED
        elif status >= 500:
            kind = GenerationErrorKind.UPSTREAM_ERROR
        else:
            return GenerationError(
                GenerationErrorKind.UNKNOWN,
                getattr(error, "message", None) or ERROR_MESSAGES[GenerationErrorKind.UNKNOWN],
                status,
            )
        return GenerationError(kind, status_code=status)

    if isinstance(error, anthropic.APIConnectionError):
        return GenerationError(GenerationErrorKind.UPSTREAM_ERROR)

    return GenerationError(GenerationErrorKind.UNKNOWN)


class GenerationClient:
    """
    Sends prompts to the Messages API.

    The wrapped AsyncAnthropic client is an explicit resource: the FastAPI
    lifespan builds one GenerationClient at startup and closes it at
    shutdown.
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self._client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationClient":
        client = anthropic.AsyncAnthropic(
            api_key=settings.claude_api_key,
            timeout=settings.claude_timeout_seconds,
            max_retries=0,
        )
        return cls(client, model=settings.claude_model, max_tokens=settings.claude_max_tokens)

    async def generate_analysis(self, prompt: str) -> str:
        """
        Send one prompt and return the first text block of the reply.

        Raises:
            GenerationError: On any API failure, or when the reply has no text.
        """
        try:
            message = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as e:
            error = classify_error(e)
            logger.error(f"Generation request failed ({error.kind.value}): {e}")
            raise error from e

        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text

        logger.error("Generation response contained no text content")
        raise GenerationError(GenerationErrorKind.UNKNOWN, "No text content in Claude response")

    async def test_connection(self) -> bool:
        """Send a tiny request; True when the API accepts it."""
        try:
            await self._client.messages.create(
                model=self.model,
                max_tokens=PING_MAX_TOKENS,
                messages=[{"role": "user", "content": "Hello"}],
            )
        except anthropic.AnthropicError as e:
            logger.warning(f"Generation service connection test failed: {e}")
            return False
        return True

    async def close(self) -> None:
        await self._client.close()
