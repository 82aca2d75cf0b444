"""
Application layer for AI Cost Estimator.

Wires the core together with the profile store and tokenizer.
"""

from .session import EstimatorSession, TextField

__all__ = ["EstimatorSession", "TextField"]
