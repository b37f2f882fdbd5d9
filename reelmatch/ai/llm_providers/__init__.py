"""
LLM Provider Abstractions for reelmatch.

Provides a unified interface for generative model backends. Gemini is
the shipped implementation; other providers implement BaseLLMProvider.
"""

from .base import BaseLLMProvider, LLMConfig, LLMResponse
from .gemini import GeminiProvider

__all__ = [
    'BaseLLMProvider',
    'LLMConfig',
    'LLMResponse',
    'GeminiProvider',
]
