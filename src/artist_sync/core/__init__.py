"""
Core domain: configuration, models, errors and reconciliation.
"""
