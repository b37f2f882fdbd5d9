"""
Base abstract LLM provider interface.

This module defines the abstract base class that all LLM providers must implement.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass, field


@dataclass
class LLMConfig:
    """Configuration for LLM provider."""

    # Connection settings
    base_url: str
    api_key: Optional[str] = None

    # Model settings
    model: str = "default"
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    top_p: float = 0.9

    # Behavior settings
    timeout: float = 60.0

    # Additional provider-specific settings
    extra_params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResponse:
    """Response from LLM completion."""

    content: str
    model: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None  # tokens used
    raw_response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "content": self.content,
            "model": self.model,
            "finish_reason": self.finish_reason,
            "usage": self.usage,
        }


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All LLM providers must implement this interface so the matcher and
    recommendation generator can run against any backend.
    """

    def __init__(self, config: LLMConfig):
        """
        Initialize the provider with configuration.

        Args:
            config: LLM configuration
        """
        self.config = config
        self._client = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'gemini')."""
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the provider (establish connections, etc.).

        This is called once before first use.
        """
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """
        Cleanup resources (close connections, etc.).

        This is called when the provider is no longer needed.
        """
        pass

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a text completion.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt to set context
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with generated text

        Raises:
            Exception: If completion fails
        """
        pass

    @abstractmethod
    async def complete_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Any:
        """
        Generate a JSON completion.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt
            **kwargs: Additional parameters

        Returns:
            Parsed JSON value

        Raises:
            Exception: If completion or parsing fails
        """
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.cleanup()
