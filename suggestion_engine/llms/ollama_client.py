"""Implementation of the LLMInterface using the Ollama API.
"""

import logging
import ollama
from typing import Any

from suggestion_engine.interfaces.llm_interface import LLMInterface
from suggestion_engine.core.config import Settings

logger = logging.getLogger(__name__)

class OllamaClient(LLMInterface):
    """Connects to a local Ollama instance to back the grouping fallback.

    Implements the LLMInterface protocol.
    """

    def __init__(self, settings: Settings):
        """Initializes the Ollama client.

        Args:
            settings: The engine settings containing Ollama configuration.
        """
        self.client = ollama.Client(host=settings.ollama_base_url)
        self.default_model = settings.default_model
        logger.info(f"Ollama client initialized for host: {settings.ollama_base_url}")

    def generate(self, prompt: str, model: str | None = None, **kwargs: Any) -> str:
        """Generates text using the Ollama /api/generate endpoint.

        Args:
            prompt: The input prompt.
            model: The model to use (defaults to settings.default_model).
            **kwargs: Additional options for ollama.generate (e.g., temperature).

        Returns:
            The generated text response.

        Raises:
            ollama.ResponseError: If the Ollama API returns an error.
        """
        target_model = model or self.default_model
        try:
            logger.debug(f"Generating text with model '{target_model}'. Prompt: '{prompt[:50]}...'")
            response = self.client.generate(
                model=target_model,
                prompt=prompt,
                format="json", # The grouping fallback expects a JSON object
                options=kwargs.get("options", {}),
                stream=False
            )
            generated_text = (response.get('response') or '').strip()
            logger.debug(f"Generated text response (first 50 chars): '{generated_text[:50]}...'")
            return generated_text
        except ollama.ResponseError as e:
            logger.error(f"Ollama API error during generation: {e.status_code} - {e.error}")
            raise
