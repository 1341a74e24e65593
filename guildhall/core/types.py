"""Core data types for the guildhall application."""

from typing import Any, Dict, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str
    createdAt: int


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    updatedAt: int


class APIResponse(TypedDict):
    """Generic API response structure."""

    status: str
    message: str
    data: Optional[Dict[str, Any]]  # noqa: UP006
