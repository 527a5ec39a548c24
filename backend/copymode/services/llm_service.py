"""
Groq chat completion client (OpenAI-compatible API).
"""
from typing import Callable, Dict, List, Optional
from openai import AsyncOpenAI, APIConnectionError, APIStatusError
from loguru import logger

from copymode.core.config import settings
from copymode.core.exceptions import ConfigurationError, UpstreamAPIError


def _error_detail(error: APIStatusError) -> str:
    """Pull the vendor's error message out of an error body when there is one."""
    body = error.body
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return inner["message"]
        return str(inner)
    return error.message


class LLMService:
    """Chat completions against Groq."""

    def __init__(self, client_factory: Optional[Callable[[str], AsyncOpenAI]] = None):
        self.model = settings.GROQ_MODEL
        self._client_factory = client_factory or self._default_client

    @staticmethod
    def _default_client(api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key, base_url=settings.GROQ_BASE_URL)

    @staticmethod
    def resolve_api_key(user_api_key: Optional[str]) -> str:
        """User's own key first, then the server-wide key."""
        api_key = user_api_key or settings.GROQ_API_KEY
        if not api_key:
            raise ConfigurationError("Groq API key not configured for this user.", status_code=400)
        return api_key

    async def complete(
        self,
        messages: List[Dict[str, str]],
        api_key: str,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> str:
        """
        Run a non-streaming chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            api_key: Groq API key
            temperature: Sampling temperature (defaults to settings)
            model: Groq model ID (defaults to settings)

        Returns:
            Generated text, trimmed

        Raises:
            UpstreamAPIError: Groq error (status mirrors Groq's) or empty output
        """
        model = model or self.model
        temperature = temperature if temperature is not None else settings.GROQ_DEFAULT_TEMPERATURE

        system_size = len(messages[0]["content"]) if messages and messages[0]["role"] == "system" else 0
        logger.info(
            f"Calling Groq ({model}): {len(messages)} messages, "
            f"system prompt {system_size} chars, temperature={temperature}"
        )

        client = self._client_factory(api_key)
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
            )
        except APIStatusError as e:
            detail = _error_detail(e)
            logger.error(f"Groq API error - status {e.status_code}: {detail}")
            raise UpstreamAPIError(f"Groq API Error ({e.status_code}): {detail}", status_code=e.status_code)
        except APIConnectionError as e:
            logger.error(f"Could not reach Groq API: {e}")
            raise UpstreamAPIError(f"Could not connect to Groq API: {e}")
        finally:
            await client.close()

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            logger.error("Groq returned no content")
            raise UpstreamAPIError("No content generated by Groq API or unexpected response structure.")

        return content.strip()


# Singleton instance
llm_service = LLMService()
