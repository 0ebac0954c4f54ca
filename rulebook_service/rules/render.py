"""Render stored rules and rulebooks back into the rulebook DSL."""

from __future__ import annotations

from typing import Any, Iterable

import yaml

from rulebook_service.storage.models import RuleRecord, RulebookRecord


def _rule_entry(rule: RuleRecord) -> dict[str, Any]:
    entry: dict[str, Any] = {"rule": rule.id}
    if rule.description:
        entry["description"] = rule.description
    entry["when"] = rule.when
    entry["do"] = rule.do
    if rule.metadata:
        entry["metadata"] = rule.metadata
    return entry


def _dump(document: dict[str, Any]) -> str:
    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False, allow_unicode=True)


def render_rule(rule: RuleRecord) -> str:
    """Render a single rule as a DSL rule entry."""
    return _dump(_rule_entry(rule))


def render_rulebook(rulebook: RulebookRecord, rules: Iterable[RuleRecord]) -> str:
    """Render a rulebook with its member rules inline, in membership order."""
    document: dict[str, Any] = {
        "rulebook": rulebook.id,
        "version": rulebook.version,
        "meta": {
            "description": rulebook.description,
            "owner": rulebook.owner,
            "source": rulebook.source,
        },
    }
    if rulebook.metadata:
        document["metadata"] = rulebook.metadata
    document["rules"] = [_rule_entry(rule) for rule in rules]
    return _dump(document)
