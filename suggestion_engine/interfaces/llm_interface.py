"""Interface definition for Large Language Model (LLM) services.
"""

from typing import Protocol, Any, runtime_checkable

@runtime_checkable
class LLMInterface(Protocol):
    """A protocol defining the standard interface for LLM interactions.

    This ensures that different LLM backends (Ollama, hosted APIs, test
    doubles) can back the model-driven grouping fallback interchangeably.
    """

    def generate(self, prompt: str, model: str | None = None, **kwargs: Any) -> str:
        """Generates a text completion based on a single prompt.

        Args:
            prompt: The input text prompt.
            model: The specific model to use (optional, uses default if None).
            **kwargs: Additional keyword arguments for the LLM backend.

        Returns:
            The generated text completion.
        """
        ...
