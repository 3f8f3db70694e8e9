"""Contact store port — abstract interface for contact persistence.

The contact service depends on this protocol, never on SQLite directly.
"""

from __future__ import annotations

from typing import Protocol

from kindred.data.models import Contact, Interaction


class ContactStore(Protocol):
    """Abstract persistence interface keyed by contact id."""

    def insert(self, contact: Contact) -> Contact: ...

    def select_by_id(self, contact_id: str) -> Contact | None: ...

    def update(self, contact_id: str, **fields: object) -> Contact | None: ...

    def select_all(
        self, include_archived: bool = False, only_archived: bool = False,
    ) -> list[Contact]: ...

    def add_interaction(self, interaction: Interaction) -> Interaction: ...

    def list_interactions(self, contact_id: str) -> list[Interaction]: ...

    def delete_all(self) -> None: ...
