"""
OpenAI generation client.

Fetches generated text to feed into the estimator. Failures surface as a
single recoverable error type.
"""

import logging
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Raised when a generation request fails or returns no text."""


class GenerationClient:
    """OpenAI chat client that returns plain response text."""

    def __init__(self, model: str, api_key: Optional[str] = None):
        """Initialize the generation client.

        Args:
            model: OpenAI model name (required)
            api_key: API key; when omitted the OpenAI client reads OPENAI_API_KEY

        Raises:
            ValueError: If model is missing/empty
            GenerationError: If no credential is available
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.model = model
        try:
            self.client = OpenAI(api_key=api_key) if api_key else OpenAI()
        except openai.OpenAIError as e:
            raise GenerationError(f"Cannot create OpenAI client: {e}") from e

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any
    ) -> str:
        """Send a single-message chat completion and return its text.

        Args:
            prompt: User prompt (required)
            temperature: Sampling temperature (optional)
            max_tokens: Maximum tokens to generate (optional)
            **kwargs: Additional OpenAI parameters

        Returns:
            Text content of the first choice

        Raises:
            ValueError: If prompt is empty
            GenerationError: On authentication, network or API failure, or an
                empty response
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt is required and cannot be empty")

        messages: List[Dict[str, str]] = [{"role": "user", "content": prompt}]
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs
            )
        except openai.OpenAIError as e:
            logger.warning("Generation request to %s failed: %s", self.model, e)
            raise GenerationError(f"Generation request failed: {e}") from e

        if not response.choices:
            raise GenerationError("OpenAI response contained no choices")

        content = response.choices[0].message.content
        if not content:
            raise GenerationError("OpenAI response contained no text")
        return content
