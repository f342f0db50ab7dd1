"""Common utilities for tests."""

import unittest.mock
from typing import Any

from mockfirestore import MockFirestore
from mockfirestore.document import DocumentReference


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support transactional reads."""
    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get

        def doc_ref_get(self: Any, *args: Any, **kwargs: Any) -> Any:
            # Reads inside a transaction pass transaction=...; the mock has no
            # isolation, so the plain read is equivalent.
            return self._orig_get()

        DocumentReference.get = doc_ref_get


class MockBatch:
    def __init__(self, db: Any) -> None:
        self.db = db
        self.writes: list[tuple[str, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref, data))

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref, data))

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref, None))

    def _real_commit(self) -> None:
        for op, ref, data in self.writes:
            if op == "delete":
                ref.delete()
            elif op == "set":
                ref.set(data)
            else:
                ref.update(data)


class MockTransaction:
    """Transaction stand-in that applies writes immediately."""

    def __init__(self, db: Any) -> None:
        self.db = db
        self.writes: list[tuple[Any, Any]] = []

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append((ref, data))
        ref.update(data)

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append((ref, data))
        ref.set(data, merge=merge)

    def delete(self, ref: Any) -> None:
        self.writes.append((ref, None))
        ref.delete()


def make_mock_db() -> MockFirestore:
    """MockFirestore with fresh batches and immediate-write transactions."""
    patch_mockfirestore()
    db = MockFirestore()
    db.batch = unittest.mock.MagicMock(side_effect=lambda: MockBatch(db))
    db.transaction = unittest.mock.MagicMock(side_effect=lambda **kw: MockTransaction(db))
    return db


def make_firestore_module(db: Any) -> unittest.mock.MagicMock:
    """Stand-in for ``firebase_admin.firestore`` bound to ``db``."""
    module = unittest.mock.MagicMock()
    module.client.return_value = db
    module.SERVER_TIMESTAMP = "2023-01-01"
    module.transactional = lambda fn: fn
    return module


def make_participants(count: int) -> list[dict[str, Any]]:
    return [{"id": f"player_{i + 1}", "name": f"Player {i + 1}"} for i in range(count)]


def seed_tournament(
    db: Any,
    tournament_id: str = "t1",
    participant_count: int = 0,
    status: str = "registration",
    **extra: Any,
) -> Any:
    """Create a tournament document with enrolled participants."""
    ref = db.collection("tournaments").document(tournament_id)
    ref.set({"name": "Spring Open", "status": status, **extra})
    for participant in make_participants(participant_count):
        ref.collection("participants").document(participant["id"]).set(
            {"name": participant["name"]}
        )
    return ref
