"""
Rule repository for database operations.

All methods run on the connection handed to the constructor, so callers
decide the transaction boundary (see ``storage.unit_of_work``).
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from rulebook_service.core.result import Ok, Outcome, already_exists, invalid, not_found
from rulebook_service.storage.models import RuleRecord, now_iso


class RuleRepository:
    """Repository for rule persistence operations."""

    def __init__(self, conn: Connection):
        self.conn = conn

    # =========================================================================
    # Queries
    # =========================================================================

    def exists(self, rule_id: str) -> bool:
        result = self.conn.execute(
            text("SELECT 1 FROM rules WHERE id = :id"),
            {"id": rule_id},
        )
        return result.fetchone() is not None

    def get(self, rule_id: str) -> Outcome[RuleRecord]:
        """Get a rule by ID.

        Returns:
            Ok(RuleRecord) if found, NOT_FOUND otherwise
        """
        result = self.conn.execute(
            text("SELECT * FROM rules WHERE id = :id"),
            {"id": rule_id},
        )
        row = result.fetchone()
        if row is None:
            return not_found(f"Rule '{rule_id}' not found.")
        return Ok(RuleRecord.from_row(row._mapping))

    def list(self) -> Outcome[list[RuleRecord]]:
        """Get all rules ordered by id."""
        result = self.conn.execute(text("SELECT * FROM rules ORDER BY id"))
        return Ok([RuleRecord.from_row(row._mapping) for row in result.fetchall()])

    def count(self) -> int:
        result = self.conn.execute(text("SELECT COUNT(*) FROM rules"))
        return result.fetchone()[0]

    def referencing_rulebooks(self, rule_id: str) -> list[str]:
        """Ids of rulebooks that include the rule."""
        result = self.conn.execute(
            text("""
            SELECT DISTINCT rulebook_id FROM rulebook_rules
            WHERE rule_id = :rule_id
            ORDER BY rulebook_id
            """),
            {"rule_id": rule_id},
        )
        return [row[0] for row in result.fetchall()]

    # =========================================================================
    # Mutations
    # =========================================================================

    def create(self, record: RuleRecord) -> Outcome[RuleRecord]:
        """Insert a new rule.

        Returns:
            Ok(record), or ALREADY_EXISTS if the id is taken. A unique-key
            violation from a concurrent insert is reported the same way.
        """
        if self.exists(record.id):
            return already_exists(f"Rule '{record.id}' already exists.")

        try:
            self.conn.execute(
                text("""
                INSERT INTO rules (
                    id, when_clause, action, description, metadata, created_at, updated_at
                ) VALUES (:id, :when_clause, :action, :description, :metadata, :created_at, :updated_at)
                """),
                record.to_row(),
            )
        except IntegrityError:
            return already_exists(f"Rule '{record.id}' already exists.")
        return Ok(record)

    def update(self, record: RuleRecord) -> Outcome[RuleRecord]:
        """Replace the mutable fields of an existing rule."""
        current = self.get(record.id)
        if not current.ok:
            return current

        record.created = current.value.created
        record.updated = now_iso()
        self.conn.execute(
            text("""
            UPDATE rules SET
                when_clause = :when_clause,
                action = :action,
                description = :description,
                metadata = :metadata,
                updated_at = :updated_at
            WHERE id = :id
            """),
            record.to_row(),
        )
        return Ok(record)

    def delete(self, rule_id: str) -> Outcome[str]:
        """Delete a rule.

        Rules still referenced by a rulebook are kept; the caller gets a
        VALIDATION error naming the rulebooks.
        """
        if not self.exists(rule_id):
            return not_found(f"Rule '{rule_id}' not found.")

        rulebooks = self.referencing_rulebooks(rule_id)
        if rulebooks:
            names = ", ".join(f"'{rb}'" for rb in rulebooks)
            return invalid(f"Rule '{rule_id}' is still used by rulebook(s) {names}.")

        self.conn.execute(text("DELETE FROM rules WHERE id = :id"), {"id": rule_id})
        return Ok(rule_id)
