"""
Content-negotiated rulebook ingestion.

A rulebook arrives either as structured JSON or as DSL text. The content
type is resolved to a ``ContentKind`` before any transaction is opened;
both accepted kinds produce the same ``IngestedRulebook``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.engine import Connection

from rulebook_service.core.request import CONTENT_TYPE, BodyDecodeError, RequestExtractor
from rulebook_service.core.result import Ok, Outcome, already_exists, invalid
from rulebook_service.rules.compiler import RulebookCompiler
from rulebook_service.rules.schemas import RuleRequest, RulebookRequest, describe_validation_error
from rulebook_service.storage.repositories import RuleRepository, RulebookRepository

JSON_CONTENT_TYPE = "application/json"
DSL_CONTENT_TYPE = "application/rules-engine"

M = TypeVar("M", bound=BaseModel)


class ContentKind(str, Enum):
    """Representation of a rulebook request body."""

    JSON = "json"
    DSL = "dsl"
    UNSUPPORTED = "unsupported"


@dataclass
class IngestedRulebook:
    """A rulebook ready to be stored, plus any rules defined inline."""

    rulebook: RulebookRequest
    rules: list[RuleRequest] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.rulebook.id


def content_kind(extractor: RequestExtractor) -> ContentKind:
    if extractor.is_content_type(JSON_CONTENT_TYPE):
        return ContentKind.JSON
    if extractor.is_content_type(DSL_CONTENT_TYPE):
        return ContentKind.DSL
    return ContentKind.UNSUPPORTED


def decode_json(extractor: RequestExtractor, model: type[M]) -> Outcome[M]:
    """Decode a UTF-8 JSON body into ``model``."""
    try:
        content = extractor.content("utf-8")
    except BodyDecodeError as e:
        return invalid(str(e))

    try:
        return Ok(model.model_validate_json(content))
    except ValidationError as e:
        return invalid(f"Invalid request body: {describe_validation_error(e)}")


def ingest_rulebook(
    extractor: RequestExtractor,
    compiler: RulebookCompiler | None = None,
) -> Outcome[IngestedRulebook]:
    """Turn a rulebook create request into an ``IngestedRulebook``.

    Unsupported content types fail here, without any store access.
    """
    kind = content_kind(extractor)

    if kind is ContentKind.JSON:
        decoded = decode_json(extractor, RulebookRequest)
        if not decoded.ok:
            return decoded
        return Ok(IngestedRulebook(rulebook=decoded.value))

    if kind is ContentKind.DSL:
        try:
            content = extractor.content("utf-8")
        except BodyDecodeError as e:
            return invalid(str(e))
        compiled = (compiler or RulebookCompiler()).compile(content)
        if not compiled.ok:
            return compiled
        return Ok(IngestedRulebook(rulebook=compiled.value.rulebook, rules=compiled.value.rules))

    header = extractor.header(CONTENT_TYPE, "")
    return invalid(f"Unsupported content type {header}.")


def store_rulebook(conn: Connection, ingested: IngestedRulebook) -> Outcome[str]:
    """Persist an ingested rulebook; meant to run inside one unit of work.

    Inline rules that do not exist yet are created. An inline rule whose id
    is already stored with a different definition is a conflict.
    """
    rulebooks = RulebookRepository(conn)
    rules = RuleRepository(conn)

    if rulebooks.exists(ingested.id):
        return already_exists(f"Rulebook '{ingested.id}' already exists.")

    for rule in ingested.rules:
        record = rule.to_record()
        stored = rules.get(record.id)
        if stored.ok:
            if not stored.value.same_definition(record):
                return already_exists(
                    f"Rule '{record.id}' already exists with a different definition."
                )
            continue
        created = rules.create(record)
        if not created.ok:
            return created

    created = rulebooks.create(ingested.rulebook.to_record())
    if not created.ok:
        return created
    return Ok(ingested.id)
