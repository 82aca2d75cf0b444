"""
Core modules for AI Cost Estimator.

This package contains unit conversion, tokenization, the cost engine,
the sort policy and debounced text measurement.
"""
