"""
LLM Service - Groq chat completions through the OpenAI-compatible API

Never raises to callers: missing key, API errors and empty answers
all end in the caller-supplied fallback text.
"""

import logging  # Needed for tenacity before_sleep_log level constants
from typing import Optional, List, Dict, Any

from loguru import logger
from openai import (
    AsyncOpenAI,
    APIError,
    RateLimitError,
    APIConnectionError,
)
from openai.types.chat import ChatCompletionMessageParam
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from config.config import GROQ_API_KEY, GROQ_BASE_URL, GROQ_MODEL, LLM_TIMEOUT_SECONDS


# Number of previous messages sent as context
MAX_HISTORY_TURNS = 10

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024


class LLMService:
    """
    Chat completion client

    Features:
    - Groq (llama) via AsyncOpenAI with custom base_url
    - Bounded history window
    - Retries for transient API errors
    - Fallback text instead of exceptions
    """

    def __init__(self, api_key: Optional[str] = None, model: str = GROQ_MODEL):
        self.api_key = api_key if api_key is not None else GROQ_API_KEY
        self.model = model

        if not self.api_key:
            logger.warning("GROQ_API_KEY not configured - assistants will answer with fallback text")
            self.enabled = False
            self.client = None
            return

        self.enabled = True
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=GROQ_BASE_URL,
            timeout=LLM_TIMEOUT_SECONDS,
        )
        logger.info(f"LLMService initialized (model: {self.model})")

    @staticmethod
    def build_messages(
        system_prompt: str,
        history: List[Dict[str, Any]],
        message: str,
    ) -> List[ChatCompletionMessageParam]:
        """
        Build chat messages: system prompt + last MAX_HISTORY_TURNS turns + user message

        Args:
            system_prompt: Assistant persona
            history: Previous turns [{role, content, ...}]
            message: New user message

        Returns:
            Messages list for chat.completions
        """
        messages: List[ChatCompletionMessageParam] = [
            {"role": "system", "content": system_prompt}
        ]

        for turn in history[-MAX_HISTORY_TURNS:]:
            role = turn.get("role")
            content = turn.get("content")
            if role in ("user", "assistant") and content:
                messages.append({"role": role, "content": content})

        messages.append({"role": "user", "content": message})
        return messages

    @retry(
        retry=retry_if_exception_type((RateLimitError, APIConnectionError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _create_completion(
        self,
        messages: List[ChatCompletionMessageParam],
        temperature: float,
        max_tokens: int,
    ) -> Optional[str]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def generate(
        self,
        system_prompt: str,
        history: List[Dict[str, Any]],
        message: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> Optional[str]:
        """
        Ask the model for an answer

        Returns:
            Stripped answer text, or None if disabled, failed or empty
        """
        if not self.enabled:
            return None

        messages = self.build_messages(system_prompt, history, message)

        try:
            content = await self._create_completion(messages, temperature, max_tokens)
        except (APIError, RateLimitError, APIConnectionError) as e:
            logger.error(f"LLM API error ({self.model}): {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected LLM error: {e}")
            return None

        if not content or not content.strip():
            logger.warning("LLM returned empty content")
            return None

        return content.strip()

    async def complete(
        self,
        system_prompt: str,
        history: List[Dict[str, Any]],
        message: str,
        fallback: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """
        Same as generate() but always returns text

        Args:
            system_prompt: Assistant persona
            history: Previous turns
            message: New user message
            fallback: Text returned when the model is unavailable

        Returns:
            Model answer or fallback
        """
        answer = await self.generate(
            system_prompt, history, message, temperature=temperature, max_tokens=max_tokens
        )
        return answer if answer is not None else fallback


_llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """Get singleton LLM service instance"""
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
