"""
Rulebook repository for database operations.

Membership is stored in ``rulebook_rules`` with an explicit position so the
order rules were given in is the order they are returned in.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from rulebook_service.core.result import Ok, Outcome, already_exists, invalid, not_found
from rulebook_service.storage.models import RuleRecord, RulebookRecord, now_iso
from rulebook_service.storage.repositories.rule_repo import RuleRepository


class RulebookRepository:
    """Repository for rulebook persistence operations."""

    def __init__(self, conn: Connection):
        self.conn = conn
        self.rules = RuleRepository(conn)

    # =========================================================================
    # Queries
    # =========================================================================

    def exists(self, rulebook_id: str) -> bool:
        result = self.conn.execute(
            text("SELECT 1 FROM rulebooks WHERE id = :id"),
            {"id": rulebook_id},
        )
        return result.fetchone() is not None

    def get(self, rulebook_id: str) -> Outcome[RulebookRecord]:
        """Get a rulebook with its ordered member ids."""
        result = self.conn.execute(
            text("SELECT * FROM rulebooks WHERE id = :id"),
            {"id": rulebook_id},
        )
        row = result.fetchone()
        if row is None:
            return not_found(f"Rulebook '{rulebook_id}' not found.")
        return Ok(RulebookRecord.from_row(row._mapping, self._member_ids(rulebook_id)))

    def list(self) -> Outcome[list[RulebookRecord]]:
        """Get all rulebooks ordered by id."""
        result = self.conn.execute(text("SELECT * FROM rulebooks ORDER BY id"))
        return Ok([
            RulebookRecord.from_row(row._mapping, self._member_ids(row._mapping["id"]))
            for row in result.fetchall()
        ])

    def rules_of(self, rulebook_id: str) -> Outcome[list[RuleRecord]]:
        """Get the member rules of a rulebook in application order."""
        if not self.exists(rulebook_id):
            return not_found(f"Rulebook '{rulebook_id}' not found.")

        result = self.conn.execute(
            text("""
            SELECT r.* FROM rulebook_rules rr
            JOIN rules r ON rr.rule_id = r.id
            WHERE rr.rulebook_id = :rulebook_id
            ORDER BY rr.position
            """),
            {"rulebook_id": rulebook_id},
        )
        return Ok([RuleRecord.from_row(row._mapping) for row in result.fetchall()])

    def _member_ids(self, rulebook_id: str) -> list[str]:
        result = self.conn.execute(
            text("""
            SELECT rule_id FROM rulebook_rules
            WHERE rulebook_id = :rulebook_id
            ORDER BY position
            """),
            {"rulebook_id": rulebook_id},
        )
        return [row[0] for row in result.fetchall()]

    # =========================================================================
    # Mutations
    # =========================================================================

    def create(self, record: RulebookRecord) -> Outcome[RulebookRecord]:
        """Insert a rulebook and its membership.

        Every referenced rule must already exist.
        """
        if self.exists(record.id):
            return already_exists(f"Rulebook '{record.id}' already exists.")

        check = self._check_members(record.rules)
        if not check.ok:
            return check

        try:
            self.conn.execute(
                text("""
                INSERT INTO rulebooks (
                    id, version, description, owner, source, metadata, created_at, updated_at
                ) VALUES (:id, :version, :description, :owner, :source, :metadata, :created_at, :updated_at)
                """),
                record.to_row(),
            )
        except IntegrityError:
            return already_exists(f"Rulebook '{record.id}' already exists.")

        self._write_members(record.id, record.rules)
        return Ok(record)

    def update(self, record: RulebookRecord) -> Outcome[RulebookRecord]:
        """Replace fields and membership of an existing rulebook."""
        current = self.get(record.id)
        if not current.ok:
            return current

        check = self._check_members(record.rules)
        if not check.ok:
            return check

        record.created = current.value.created
        record.updated = now_iso()
        self.conn.execute(
            text("""
            UPDATE rulebooks SET
                version = :version,
                description = :description,
                owner = :owner,
                source = :source,
                metadata = :metadata,
                updated_at = :updated_at
            WHERE id = :id
            """),
            record.to_row(),
        )
        self.conn.execute(
            text("DELETE FROM rulebook_rules WHERE rulebook_id = :rulebook_id"),
            {"rulebook_id": record.id},
        )
        self._write_members(record.id, record.rules)
        return Ok(record)

    def delete(self, rulebook_id: str) -> Outcome[str]:
        """Delete a rulebook; membership rows go with it, rules stay."""
        if not self.exists(rulebook_id):
            return not_found(f"Rulebook '{rulebook_id}' not found.")

        self.conn.execute(
            text("DELETE FROM rulebook_rules WHERE rulebook_id = :rulebook_id"),
            {"rulebook_id": rulebook_id},
        )
        self.conn.execute(text("DELETE FROM rulebooks WHERE id = :id"), {"id": rulebook_id})
        return Ok(rulebook_id)

    def add_rule(self, rulebook_id: str, rule_id: str) -> Outcome[list[str]]:
        """Append a rule to the end of a rulebook."""
        members = self._lookup_both(rulebook_id, rule_id)
        if not members.ok:
            return members
        if rule_id in members.value:
            return already_exists(f"Rule '{rule_id}' is already part of rulebook '{rulebook_id}'.")

        result = self.conn.execute(
            text("SELECT COALESCE(MAX(position), -1) FROM rulebook_rules WHERE rulebook_id = :rulebook_id"),
            {"rulebook_id": rulebook_id},
        )
        position = result.fetchone()[0] + 1
        self.conn.execute(
            text("""
            INSERT INTO rulebook_rules (rulebook_id, rule_id, position)
            VALUES (:rulebook_id, :rule_id, :position)
            """),
            {"rulebook_id": rulebook_id, "rule_id": rule_id, "position": position},
        )
        self._touch(rulebook_id)
        return Ok(members.value + [rule_id])

    def remove_rule(self, rulebook_id: str, rule_id: str) -> Outcome[list[str]]:
        """Remove a rule from a rulebook, keeping the order of the others."""
        members = self._lookup_both(rulebook_id, rule_id)
        if not members.ok:
            return members
        if rule_id not in members.value:
            return not_found(f"Rule '{rule_id}' is not part of rulebook '{rulebook_id}'.")

        self.conn.execute(
            text("""
            DELETE FROM rulebook_rules
            WHERE rulebook_id = :rulebook_id AND rule_id = :rule_id
            """),
            {"rulebook_id": rulebook_id, "rule_id": rule_id},
        )
        self._touch(rulebook_id)
        return Ok([member for member in members.value if member != rule_id])

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lookup_both(self, rulebook_id: str, rule_id: str) -> Outcome[list[str]]:
        if not self.exists(rulebook_id):
            return not_found(f"Rulebook '{rulebook_id}' not found.")
        if not self.rules.exists(rule_id):
            return not_found(f"Rule '{rule_id}' not found.")
        return Ok(self._member_ids(rulebook_id))

    def _check_members(self, rule_ids: list[str]) -> Outcome[list[str]]:
        seen = set()
        for rule_id in rule_ids:
            if rule_id in seen:
                return invalid(f"Rule '{rule_id}' is listed more than once.")
            seen.add(rule_id)
            if not self.rules.exists(rule_id):
                return not_found(f"Rule '{rule_id}' not found.")
        return Ok(rule_ids)

    def _write_members(self, rulebook_id: str, rule_ids: list[str]) -> None:
        for position, rule_id in enumerate(rule_ids):
            self.conn.execute(
                text("""
                INSERT INTO rulebook_rules (rulebook_id, rule_id, position)
                VALUES (:rulebook_id, :rule_id, :position)
                """),
                {"rulebook_id": rulebook_id, "rule_id": rule_id, "position": position},
            )

    def _touch(self, rulebook_id: str) -> None:
        self.conn.execute(
            text("UPDATE rulebooks SET updated_at = :updated_at WHERE id = :id"),
            {"updated_at": now_iso(), "id": rulebook_id},
        )
