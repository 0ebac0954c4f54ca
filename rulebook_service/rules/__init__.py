"""Rules domain - request models, when-clause validation, DSL and API routes."""

from rulebook_service.rules.compiler import CompiledRulebook, RulebookCompiler
from rulebook_service.rules.expression import WhenValidator
from rulebook_service.rules.ingestion import (
    DSL_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    ContentKind,
    IngestedRulebook,
    content_kind,
    ingest_rulebook,
    store_rulebook,
)
from rulebook_service.rules.render import render_rule, render_rulebook
from rulebook_service.rules.router import router
from rulebook_service.rules.schemas import (
    RuleRequest,
    RuleUpdateRequest,
    RulebookRequest,
    RulebookUpdateRequest,
)

__all__ = [
    "CompiledRulebook",
    "RulebookCompiler",
    "WhenValidator",
    "DSL_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    "ContentKind",
    "IngestedRulebook",
    "content_kind",
    "ingest_rulebook",
    "store_rulebook",
    "render_rule",
    "render_rulebook",
    "router",
    "RuleRequest",
    "RuleUpdateRequest",
    "RulebookRequest",
    "RulebookUpdateRequest",
]
