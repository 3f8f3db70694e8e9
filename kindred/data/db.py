"""
Kindred — Contact Database.

SQLite-backed implementation of the ContactStore port. Contacts and their
logged interactions persist across restarts; the scheduling engine only
ever sees Contact values read from here.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from kindred.core.cadence import CADENCES
from kindred.data.models import Contact, Interaction

logger = logging.getLogger(__name__)

_CONTACT_COLUMNS = (
    "name",
    "cadence",
    "custom_interval_days",
    "last_contacted_at",
    "next_reminder_at",
    "birthday",
    "is_archived",
)

INTERACTION_KINDS = ("call", "text", "meet")


class ContactDB:
    """SQLite-backed storage for contacts and interactions."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from kindred.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        """Create the tables and index if they don't exist."""
        cadence_list = ",".join(f"'{c}'" for c in CADENCES)
        kind_list = ",".join(f"'{k}'" for k in INTERACTION_KINDS)
        with self._connect() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS contacts (
                    id                   TEXT    PRIMARY KEY,
                    name                 TEXT    NOT NULL,
                    cadence              TEXT    NOT NULL CHECK (cadence IN ({cadence_list})),
                    custom_interval_days INTEGER,
                    last_contacted_at    INTEGER,
                    next_reminder_at     INTEGER,
                    birthday             TEXT,
                    is_archived          INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS interactions (
                    id          TEXT    PRIMARY KEY,
                    contact_id  TEXT    NOT NULL
                                REFERENCES contacts(id) ON DELETE CASCADE,
                    occurred_at INTEGER NOT NULL,
                    kind        TEXT    NOT NULL CHECK (kind IN ({kind_list})),
                    notes       TEXT
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_interactions_contact_id "
                "ON interactions (contact_id)"
            )
        logger.debug("Contacts tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_contact(row: sqlite3.Row) -> Contact:
        return Contact(
            id=row["id"],
            name=row["name"],
            cadence=row["cadence"],
            custom_interval_days=row["custom_interval_days"],
            last_contacted_at=row["last_contacted_at"],
            next_reminder_at=row["next_reminder_at"],
            birthday=row["birthday"],
            is_archived=bool(row["is_archived"]),
        )

    @staticmethod
    def _row_to_interaction(row: sqlite3.Row) -> Interaction:
        return Interaction(
            id=row["id"],
            contact_id=row["contact_id"],
            occurred_at=row["occurred_at"],
            kind=row["kind"],
            notes=row["notes"],
        )

    def insert(self, contact: Contact) -> Contact:
        """Insert a new contact and return it as stored."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO contacts
                    (id, name, cadence, custom_interval_days, last_contacted_at,
                     next_reminder_at, birthday, is_archived)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    contact.id, contact.name.strip(), contact.cadence,
                    contact.custom_interval_days, contact.last_contacted_at,
                    contact.next_reminder_at, contact.birthday,
                    int(contact.is_archived),
                ),
            )
        logger.info("Contact added: %s '%s' (%s)", contact.id, contact.name, contact.cadence)
        stored = self.select_by_id(contact.id)
        if stored is None:
            raise RuntimeError(f"Failed to insert contact {contact.id}")
        return stored

    def select_by_id(self, contact_id: str) -> Contact | None:
        """Fetch a single contact by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM contacts WHERE id = ?", (contact_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_contact(row)

    def update(self, contact_id: str, **fields: object) -> Contact | None:
        """Update the given columns and return the fresh row, or None if missing."""
        unknown = set(fields) - set(_CONTACT_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown contact fields: {sorted(unknown)}")
        if "is_archived" in fields:
            fields["is_archived"] = int(bool(fields["is_archived"]))

        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            with self._connect() as conn:
                conn.execute(
                    f"UPDATE contacts SET {assignments} WHERE id = ?",
                    (*fields.values(), contact_id),
                )
        return self.select_by_id(contact_id)

    def select_all(
        self, include_archived: bool = False, only_archived: bool = False,
    ) -> list[Contact]:
        """List contacts ordered by next reminder (unscheduled last)."""
        query = "SELECT * FROM contacts"
        if only_archived:
            query += " WHERE is_archived = 1"
        elif not include_archived:
            query += " WHERE is_archived = 0"
        query += " ORDER BY next_reminder_at IS NULL, next_reminder_at, name"

        with self._connect() as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_contact(r) for r in rows]

    def add_interaction(self, interaction: Interaction) -> Interaction:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO interactions (id, contact_id, occurred_at, kind, notes)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    interaction.id, interaction.contact_id,
                    interaction.occurred_at, interaction.kind, interaction.notes,
                ),
            )
        logger.info(
            "Interaction logged: %s with contact %s", interaction.kind, interaction.contact_id,
        )
        return interaction

    def list_interactions(self, contact_id: str) -> list[Interaction]:
        """Interaction history for a contact, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM interactions WHERE contact_id = ? ORDER BY occurred_at DESC",
                (contact_id,),
            ).fetchall()
        return [self._row_to_interaction(r) for r in rows]

    def delete_all(self) -> None:
        """Remove every interaction and contact."""
        with self._connect() as conn:
            conn.execute("DELETE FROM interactions")
            conn.execute("DELETE FROM contacts")
        logger.info("All contacts and interactions deleted")
