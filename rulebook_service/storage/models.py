"""
Record types for the storage layer.

Uses dataclasses for lightweight, serialization-friendly record types.
These mirror the database schema and convert to the JSON shape returned
by the API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping
import json


def now_iso() -> str:
    """Get current time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Rule Record
# =============================================================================


@dataclass
class RuleRecord:
    """Database record for a rule."""

    id: str
    when: str
    do: str
    description: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    # Timestamps
    created: str = field(default_factory=now_iso)
    updated: str = field(default_factory=now_iso)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> RuleRecord:
        """Create from database row."""
        return cls(
            id=row["id"],
            when=row["when_clause"],
            do=row["action"],
            description=row["description"] or "",
            metadata=json.loads(row["metadata"] or "{}"),
            created=row["created_at"],
            updated=row["updated_at"],
        )

    def to_row(self) -> dict[str, Any]:
        """Convert to bind parameters for insertion."""
        return {
            "id": self.id,
            "when_clause": self.when,
            "action": self.do,
            "description": self.description,
            "metadata": json.dumps(self.metadata, sort_keys=True),
            "created_at": self.created,
            "updated_at": self.updated,
        }

    def to_dict(self) -> dict[str, Any]:
        """API representation."""
        return {
            "id": self.id,
            "when": self.when,
            "do": self.do,
            "description": self.description,
            "metadata": self.metadata,
            "created": self.created,
            "updated": self.updated,
        }

    def same_definition(self, other: RuleRecord) -> bool:
        """True when both records describe the same rule, ignoring timestamps."""
        return (
            self.id == other.id
            and self.when == other.when
            and self.do == other.do
            and self.description == other.description
            and self.metadata == other.metadata
        )


# =============================================================================
# Rulebook Record
# =============================================================================


@dataclass
class RulebookRecord:
    """Database record for a rulebook with its ordered membership."""

    id: str
    version: int = 1
    description: str = ""
    owner: str = ""
    source: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    rules: list[str] = field(default_factory=list)

    # Timestamps
    created: str = field(default_factory=now_iso)
    updated: str = field(default_factory=now_iso)

    @classmethod
    def from_row(cls, row: Mapping[str, Any], rules: list[str] | None = None) -> RulebookRecord:
        """Create from database row plus the ordered member ids."""
        return cls(
            id=row["id"],
            version=row["version"],
            description=row["description"] or "",
            owner=row["owner"] or "",
            source=row["source"] or "",
            metadata=json.loads(row["metadata"] or "{}"),
            rules=list(rules or []),
            created=row["created_at"],
            updated=row["updated_at"],
        )

    def to_row(self) -> dict[str, Any]:
        """Convert to bind parameters for insertion (membership excluded)."""
        return {
            "id": self.id,
            "version": self.version,
            "description": self.description,
            "owner": self.owner,
            "source": self.source,
            "metadata": json.dumps(self.metadata, sort_keys=True),
            "created_at": self.created,
            "updated_at": self.updated,
        }

    def to_dict(self) -> dict[str, Any]:
        """API representation."""
        return {
            "id": self.id,
            "version": self.version,
            "description": self.description,
            "owner": self.owner,
            "source": self.source,
            "metadata": self.metadata,
            "rules": list(self.rules),
            "created": self.created,
            "updated": self.updated,
        }
