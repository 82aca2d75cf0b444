"""
SDK for AI Cost Estimator.

Provides the optional text generation client.
"""

from .openai_client import GenerationClient, GenerationError

__all__ = ["GenerationClient", "GenerationError"]
