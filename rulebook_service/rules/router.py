"""
API routes for rules and rulebooks.

Every handler follows the same shape: decode the request, run the store
work inside one transaction, then render the outcome into the envelope.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Connection

from rulebook_service.core.envelope import error, success
from rulebook_service.core.request import BodyDecodeError, RequestExtractor, get_request_extractor
from rulebook_service.core.result import Err, ErrorKind, Ok, Outcome, invalid, not_found
from rulebook_service.rules.expression import WhenValidator
from rulebook_service.rules.ingestion import (
    JSON_CONTENT_TYPE,
    decode_json,
    ingest_rulebook,
    store_rulebook,
)
from rulebook_service.rules.render import render_rule, render_rulebook
from rulebook_service.rules.schemas import (
    RuleRequest,
    RuleUpdateRequest,
    RulebookUpdateRequest,
    WhenRequest,
)
from rulebook_service.storage.repositories import RuleRepository, RulebookRepository
from rulebook_service.storage.unit_of_work import run_in_transaction

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Rules"])

_validator = WhenValidator()


# =============================================================================
# Error Mapping
# =============================================================================

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def render_error(err: Err, failure: str) -> JSONResponse:
    """Map an error outcome to its status code and envelope.

    ``failure`` prefixes the message of internal errors so the caller can
    tell which operation failed.
    """
    status_code = STATUS_BY_KIND[err.kind]
    if err.kind is ErrorKind.INTERNAL:
        logger.debug("%s %s", failure, err.detail)
        return error(status_code, f"{failure} {err.detail}")
    if err.kind is ErrorKind.NOT_FOUND:
        logger.debug("%s %s", failure, err.detail)
    return error(status_code, err.detail)


# =============================================================================
# Validation
# =============================================================================


@router.post("/validate-when")
def validate_when(extractor: RequestExtractor = Depends(get_request_extractor)) -> JSONResponse:
    """Check a when clause for syntactic validity."""
    failure = "Unexpected error while validating when clause."
    if extractor.is_content_type(JSON_CONTENT_TYPE):
        decoded = decode_json(extractor, WhenRequest)
        if not decoded.ok:
            return render_error(decoded, failure)
        expression = decoded.value.when
    else:
        try:
            expression = extractor.content("utf-8")
        except BodyDecodeError as e:
            return render_error(invalid(str(e)), failure)

    checked = _validator.validate(expression)
    if not checked.ok:
        return render_error(checked, failure)
    return success("Valid when clause")


# =============================================================================
# Rules
# =============================================================================


@router.post("/rules")
def create_rule(extractor: RequestExtractor = Depends(get_request_extractor)) -> JSONResponse:
    failure = "Unexpected error while creating rule. Please check your request."
    decoded = decode_json(extractor, RuleRequest)
    if not decoded.ok:
        return render_error(decoded, failure)
    rule = decoded.value

    checked = _validator.validate(rule.when)
    if not checked.ok:
        return render_error(checked, failure)

    outcome = run_in_transaction(lambda conn: RuleRepository(conn).create(rule.to_record()))
    if not outcome.ok:
        return render_error(outcome, failure)
    return success(f"Successfully created rule '{rule.id}'.", [rule.id])


@router.get("/rules")
def list_rules() -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RuleRepository(conn).list())
    if not outcome.ok:
        return render_error(outcome, "Unexpected error while listing rules. Please check your request.")
    return success("Successfully listed rules.", [rule.to_dict() for rule in outcome.value])


@router.put("/rules/{rule_id}")
def update_rule(
    rule_id: str,
    extractor: RequestExtractor = Depends(get_request_extractor),
) -> JSONResponse:
    failure = "Unexpected error while updating rule. Please check your request."
    decoded = decode_json(extractor, RuleUpdateRequest)
    if not decoded.ok:
        return render_error(decoded, failure)
    update = decoded.value

    if update.id is not None and update.id != rule_id:
        return render_error(
            invalid(f"Rule id '{update.id}' in body does not match '{rule_id}'; rule ids cannot change."),
            failure,
        )
    checked = _validator.validate(update.when)
    if not checked.ok:
        return render_error(checked, failure)

    outcome = run_in_transaction(lambda conn: RuleRepository(conn).update(update.to_record(rule_id)))
    if not outcome.ok:
        return render_error(outcome, failure)
    return success(f"Successfully updated rule '{rule_id}'.", [rule_id])


@router.get("/rules/{rule_id}")
def retrieve_rule(
    rule_id: str,
    format_: str | None = Query(None, alias="format", description="'json' (default) or any other value for DSL text"),
) -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RuleRepository(conn).get(rule_id))
    if not outcome.ok:
        return render_error(outcome, "Unexpected error while retrieving rule. Please check your request.")

    rule = outcome.value
    message = f"Successfully retrieved rule '{rule_id}'."
    if format_ is None or format_.lower() == "json":
        return success(message, [rule.to_dict()])
    return success(message, [render_rule(rule)])


@router.delete("/rules/{rule_id}")
def delete_rule(rule_id: str) -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RuleRepository(conn).delete(rule_id))
    if not outcome.ok:
        return render_error(outcome, "Unexpected error while deleting the rule. Please check your request.")
    return success(f"Successfully deleted rule '{rule_id}'.")


# =============================================================================
# Rulebooks
# =============================================================================


@router.post("/rulebooks")
def create_rulebook(extractor: RequestExtractor = Depends(get_request_extractor)) -> JSONResponse:
    failure = "Unexpected error while creating rulebook. Please check your request."
    ingested = ingest_rulebook(extractor)
    if not ingested.ok:
        return render_error(ingested, failure)
    rulebook = ingested.value

    outcome = run_in_transaction(lambda conn: store_rulebook(conn, rulebook))
    if not outcome.ok:
        return render_error(outcome, failure)
    return success(f"Successfully created rulebook '{rulebook.id}'.", [rulebook.id])


@router.get("/rulebooks")
def list_rulebooks() -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RulebookRepository(conn).list())
    if not outcome.ok:
        return render_error(outcome, "Unable to list all rulebooks.")
    return success("Successfully listed rulebooks.", [rb.to_dict() for rb in outcome.value])


@router.put("/rulebooks/{rulebook_id}")
def update_rulebook(
    rulebook_id: str,
    extractor: RequestExtractor = Depends(get_request_extractor),
) -> JSONResponse:
    failure = "Unable to update rulebook."
    decoded = decode_json(extractor, RulebookUpdateRequest)
    if not decoded.ok:
        return render_error(decoded, failure)
    update = decoded.value

    if update.id is not None and update.id != rulebook_id:
        return render_error(
            invalid(f"Rulebook id '{update.id}' in body does not match '{rulebook_id}'; rulebook ids cannot change."),
            failure,
        )

    outcome = run_in_transaction(lambda conn: RulebookRepository(conn).update(update.to_record(rulebook_id)))
    if not outcome.ok:
        return render_error(outcome, failure)
    return success(f"Successfully updated rulebook '{rulebook_id}'.", [rulebook_id])


def _generate(conn: Connection, rulebook_id: str) -> Outcome[str]:
    repo = RulebookRepository(conn)
    rulebook = repo.get(rulebook_id)
    if not rulebook.ok:
        return rulebook
    rules = repo.rules_of(rulebook_id)
    if not rules.ok:
        return rules

    found = {rule.id for rule in rules.value}
    for member in rulebook.value.rules:
        if member not in found:
            return not_found(f"Rule '{member}' not found.")
    return Ok(render_rulebook(rulebook.value, rules.value))


@router.get("/rulebooks/{rulebook_id}")
def retrieve_rulebook(rulebook_id: str) -> JSONResponse:
    """Regenerate the DSL text of a rulebook from its stored rules."""
    outcome = run_in_transaction(lambda conn: _generate(conn, rulebook_id))
    if not outcome.ok:
        return render_error(outcome, "Unable to retrieve rulebook.")
    return success(f"Successfully generated rulebook '{rulebook_id}'.", [outcome.value])


@router.get("/rulebooks/{rulebook_id}/rules")
def retrieve_rulebook_rules(rulebook_id: str) -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RulebookRepository(conn).rules_of(rulebook_id))
    if not outcome.ok:
        return render_error(outcome, "Unable to retrieve rules for rulebook.")
    return success(
        f"Successfully listed rules for the rulebook '{rulebook_id}'.",
        [rule.to_dict() for rule in outcome.value],
    )


@router.delete("/rulebooks/{rulebook_id}")
def delete_rulebook(rulebook_id: str) -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RulebookRepository(conn).delete(rulebook_id))
    if not outcome.ok:
        return render_error(outcome, "Unable to delete rulebook.")
    return success(f"Successfully deleted rulebook '{rulebook_id}'.")


@router.put("/rulebooks/{rulebook_id}/rules/{rule_id}")
def add_rule_to_rulebook(rulebook_id: str, rule_id: str) -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RulebookRepository(conn).add_rule(rulebook_id, rule_id))
    if not outcome.ok:
        return render_error(outcome, "Unable to add rule to rulebook.")
    return success(f"Successfully added rule '{rule_id}' to rulebook '{rulebook_id}'.")


@router.delete("/rulebooks/{rulebook_id}/rules/{rule_id}")
def remove_rule_from_rulebook(rulebook_id: str, rule_id: str) -> JSONResponse:
    outcome = run_in_transaction(lambda conn: RulebookRepository(conn).remove_rule(rulebook_id, rule_id))
    if not outcome.ok:
        return render_error(outcome, "Unable to remove rule from rulebook.")
    return success(f"Successfully removed rule '{rule_id}' from rulebook '{rulebook_id}'.")
