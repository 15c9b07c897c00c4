"""Domain layer — project models, selection rules, and the ordering engine.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
