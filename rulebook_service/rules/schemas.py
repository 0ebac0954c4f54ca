"""Pydantic models for rule and rulebook API requests."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rulebook_service.storage.models import RuleRecord, RulebookRecord


def _not_blank(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


# =============================================================================
# Rule Models
# =============================================================================


class RuleRequest(BaseModel):
    """Payload for creating a rule."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Unique, immutable rule id")
    when: str = Field(..., description="Condition expression")
    do: str = Field(..., description="Action body")
    description: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "when")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)

    def to_record(self) -> RuleRecord:
        return RuleRecord(
            id=self.id,
            when=self.when,
            do=self.do,
            description=self.description,
            metadata=dict(self.metadata),
        )


class RuleUpdateRequest(BaseModel):
    """Payload for replacing a rule; the id comes from the path."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(None, description="Optional; must match the path id")
    when: str
    do: str
    description: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("when")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)

    def to_record(self, rule_id: str) -> RuleRecord:
        return RuleRecord(
            id=rule_id,
            when=self.when,
            do=self.do,
            description=self.description,
            metadata=dict(self.metadata),
        )


# =============================================================================
# Rulebook Models
# =============================================================================


class RulebookRequest(BaseModel):
    """Payload for creating a rulebook (structured JSON form)."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Unique rulebook id (name)")
    version: int = 1
    description: str = ""
    owner: str = ""
    source: str = ""
    rules: list[str] = Field(default_factory=list, description="Rule ids in application order")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)

    def to_record(self) -> RulebookRecord:
        return RulebookRecord(
            id=self.id,
            version=self.version,
            description=self.description,
            owner=self.owner,
            source=self.source,
            metadata=dict(self.metadata),
            rules=list(self.rules),
        )


class RulebookUpdateRequest(BaseModel):
    """Payload for replacing a rulebook; the id comes from the path."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(None, description="Optional; must match the path id")
    version: int = 1
    description: str = ""
    owner: str = ""
    source: str = ""
    rules: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_record(self, rulebook_id: str) -> RulebookRecord:
        return RulebookRecord(
            id=rulebook_id,
            version=self.version,
            description=self.description,
            owner=self.owner,
            source=self.source,
            metadata=dict(self.metadata),
            rules=list(self.rules),
        )


# =============================================================================
# Validation Models
# =============================================================================


class WhenRequest(BaseModel):
    """JSON form of a when-clause validation request."""

    when: str
