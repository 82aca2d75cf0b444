"""
Configuration for AI Cost Estimator.

Price table loading and environment settings.
"""
