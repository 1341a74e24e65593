"""Core module for the guildhall application."""

from .types import APIResponse, FirestoreDocument

__all__ = ["FirestoreDocument", "APIResponse"]
