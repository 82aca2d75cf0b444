"""
AI Cost Estimator.

Estimates per-model LLM cost from token, word or character counts.
"""

__version__ = "0.1.0"
