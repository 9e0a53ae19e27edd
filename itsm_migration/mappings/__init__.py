"""Identifier mappings and target object-model names."""
