"""Core data types for the bracketeer application."""

from typing import Any, Optional, TypedDict


class _FirestoreDocumentBase(TypedDict):
    id: str


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    createdAt: Any
    createdBy: Optional[str]
    updatedAt: Any
    updatedBy: Optional[str]
