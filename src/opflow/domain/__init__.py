"""Domain layer — result types, rules, and failure signals.

This layer depends only on stdlib and pydantic.
It must never import from services, config, or plugins.
"""
