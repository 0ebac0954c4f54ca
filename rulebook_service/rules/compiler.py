"""
Rulebook DSL compiler.

The textual form of a rulebook is a YAML document:

    rulebook: fraud-checks
    version: 2
    meta:
      description: Flags suspicious transfers
      owner: risk-team
      source: wiki/fraud
    rules:
      - existing-rule-id
      - rule: large-amount
        description: Amount above threshold
        when: amount > 10000
        do: flag

Entries given as a bare string reference rules that must already exist;
mapping entries define the rule inline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rulebook_service.core.result import Ok, Outcome, invalid
from rulebook_service.rules.expression import WhenValidator
from rulebook_service.rules.schemas import RuleRequest, RulebookRequest, describe_validation_error


# =============================================================================
# Document Model
# =============================================================================


class MetaBlock(BaseModel):
    """Descriptive block of a rulebook document."""

    model_config = ConfigDict(extra="forbid")

    description: str = ""
    owner: str = ""
    source: str = ""


class RuleEntry(BaseModel):
    """Inline rule definition inside a rulebook document."""

    model_config = ConfigDict(extra="forbid")

    rule: str
    description: str = ""
    when: str
    do: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class RulebookDocument(BaseModel):
    """Top-level rulebook document."""

    model_config = ConfigDict(extra="forbid")

    rulebook: str
    version: int = 1
    meta: MetaBlock = Field(default_factory=MetaBlock)
    metadata: dict[str, Any] = Field(default_factory=dict)
    rules: list[str | RuleEntry] = Field(default_factory=list)


@dataclass
class CompiledRulebook:
    """Result of compiling a rulebook document."""

    rulebook: RulebookRequest
    rules: list[RuleRequest] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.rulebook.id


# =============================================================================
# Compiler
# =============================================================================


class RulebookCompiler:
    """Compiles rulebook DSL text into a rulebook plus inline rules."""

    def __init__(self, validator: WhenValidator | None = None):
        self.validator = validator or WhenValidator()

    def compile(self, source: str) -> Outcome[CompiledRulebook]:
        try:
            data = yaml.safe_load(source)
        except yaml.YAMLError as e:
            return invalid(f"Unable to compile rulebook: {e}")

        if not isinstance(data, dict):
            return invalid("Unable to compile rulebook: document must be a mapping with a 'rulebook' name.")

        try:
            document = RulebookDocument.model_validate(data)
        except ValidationError as e:
            return invalid(f"Unable to compile rulebook: {describe_validation_error(e)}")

        name = document.rulebook.strip()
        if not name:
            return invalid("Unable to compile rulebook: rulebook name must not be blank.")

        rule_ids: list[str] = []
        inline: list[RuleRequest] = []
        for entry in document.rules:
            rule_id = (entry if isinstance(entry, str) else entry.rule).strip()
            if not rule_id:
                return invalid(f"Unable to compile rulebook '{name}': rule id must not be blank.")
            if rule_id in rule_ids:
                return invalid(f"Unable to compile rulebook '{name}': rule '{rule_id}' is listed more than once.")
            rule_ids.append(rule_id)

            if isinstance(entry, RuleEntry):
                checked = self.validator.validate(entry.when)
                if not checked.ok:
                    return invalid(f"Unable to compile rulebook '{name}', rule '{rule_id}': {checked.detail}")
                inline.append(RuleRequest(
                    id=rule_id,
                    when=entry.when,
                    do=entry.do,
                    description=entry.description,
                    metadata=entry.metadata,
                ))

        rulebook = RulebookRequest(
            id=name,
            version=document.version,
            description=document.meta.description,
            owner=document.meta.owner,
            source=document.meta.source,
            rules=rule_ids,
            metadata=document.metadata,
        )
        return Ok(CompiledRulebook(rulebook=rulebook, rules=inline))
