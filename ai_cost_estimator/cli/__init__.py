"""
Command line interface for AI Cost Estimator.
"""
