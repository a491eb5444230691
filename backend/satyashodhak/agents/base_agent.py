"""
Abstract base class for AI agents backed by the Claude API.
Provides the single-shot engine call and maps API failures onto the error taxonomy.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import anthropic
import httpx
from anthropic import Anthropic

from satyashodhak.config import get_settings
from satyashodhak.exceptions import (
    EngineNotConfiguredError,
    EngineRequestFailedError,
    QuotaExhaustedError,
    RateLimitedError,
)
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class BaseAgent(ABC):
    """
    Abstract base class for AI agents.

    Holds the Claude client and model configuration. Calls are made once:
    rate limits and quota errors are surfaced to the caller rather than
    retried.
    """

    def __init__(self, api_key: Optional[str] = None, http_client: Optional[httpx.Client] = None) -> None:
        """
        Initialize the agent with Claude API client.

        Args:
            api_key: Anthropic key, defaults to the configured one
            http_client: Transport override for the SDK client
        """
        api_key = api_key or settings.anthropic_api_key
        if not api_key:
            raise EngineNotConfiguredError()

        # The SDK retries 429 and 5xx twice by default
        self.client: Anthropic = Anthropic(api_key=api_key, max_retries=0, http_client=http_client)
        self.model: str = settings.claude_model
        self.agent_name: str = self.__class__.__name__

    @abstractmethod
    def process(self, *args: Any, **kwargs: Any) -> Any:
        """Run the agent and return its result."""
        pass

    def _call_claude(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Make one call to Claude API.

        Args:
            prompt: The user prompt to send to Claude
            system_prompt: Optional system prompt for Claude

        Returns:
            Claude's text response

        Raises:
            RateLimitedError: On HTTP 429
            QuotaExhaustedError: On HTTP 402
            EngineRequestFailedError: On any other failure or an empty response
        """
        start_time = time.time()

        logger.info(f"[{self.agent_name}] Sending prompt to Claude",
                    prompt_length=len(prompt),
                    has_system=bool(system_prompt))

        message_params = {
            "model": self.model,
            "max_tokens": settings.engine_max_tokens,
            "temperature": settings.engine_temperature,
            "messages": [{"role": "user", "content": prompt}]
        }
        if system_prompt:
            message_params["system"] = system_prompt

        try:
            response = self.client.messages.create(**message_params)

        except anthropic.RateLimitError as e:
            logger.warning(f"[{self.agent_name}] Claude rate limit hit", error=str(e))
            raise RateLimitedError()

        except anthropic.APIStatusError as e:
            duration = time.time() - start_time
            logger.error(f"[{self.agent_name}] Claude API error",
                         status_code=e.status_code,
                         error=str(e),
                         duration_seconds=round(duration, 2))
            if e.status_code == 429:
                raise RateLimitedError()
            if e.status_code == 402:
                raise QuotaExhaustedError()
            raise EngineRequestFailedError()

        except anthropic.APIError as e:
            duration = time.time() - start_time
            logger.error(f"[{self.agent_name}] Claude request failed",
                         error=str(e),
                         duration_seconds=round(duration, 2))
            raise EngineRequestFailedError()

        response_text = ""
        if response.content:
            response_text = getattr(response.content[0], "text", "") or ""
        if not response_text:
            logger.error(f"[{self.agent_name}] Empty response from Claude API")
            raise EngineRequestFailedError("No response from AI")

        duration = time.time() - start_time
        usage = getattr(response, "usage", None)
        logger.info(f"[{self.agent_name}] Claude response received",
                    duration_seconds=round(duration, 2),
                    response_length=len(response_text),
                    input_tokens=getattr(usage, "input_tokens", 0),
                    output_tokens=getattr(usage, "output_tokens", 0))

        return response_text

    def _truncate_for_log(self, text: str, max_length: int = 200) -> str:
        """
        Truncate text for logging to avoid overly long log messages.

        Args:
            text: Text to truncate
            max_length: Maximum length to keep

        Returns:
            Truncated text with ellipsis if needed
        """
        if len(text) <= max_length:
            return text
        return text[:max_length] + "..."
