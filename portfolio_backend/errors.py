"""
Error types shared across the store and the HTTP layer.
"""

from __future__ import annotations


class StorageFault(RuntimeError):
    """The underlying store failed in a way the caller cannot recover from."""


class DuplicateIdError(ValueError):
    """A create call supplied an id that is already taken for that kind."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} '{entity_id}' already exists")
        self.kind = kind
        self.entity_id = entity_id
