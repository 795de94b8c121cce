"""Domain layer — dataset models, trace graph models, label geometry.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
