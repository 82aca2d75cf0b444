"""
Storage for AI Cost Estimator.

Persists the last form state of a single local profile.
"""
