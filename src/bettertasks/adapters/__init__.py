"""Adapters module - Repository implementations for the hosted backend."""

from .rest_api import RestApiProfileRepository, RestApiTaskRepository

__all__ = [
    "RestApiTaskRepository",
    "RestApiProfileRepository",
]
