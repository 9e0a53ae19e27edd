"""Utility modules for reading, coercing and resolving source data."""
