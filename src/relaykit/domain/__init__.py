"""Domain layer — results, errors, requests, and collaborator contracts.

This layer depends only on stdlib and pydantic.
It must never import from dispatch, infrastructure, commands, or config.
"""
