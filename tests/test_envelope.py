"""Tests for the response envelope and error mapping."""

import json

from rulebook_service.core.envelope import error, success
from rulebook_service.core.result import Err, ErrorKind
from rulebook_service.rules.router import STATUS_BY_KIND, render_error


def _body(response) -> dict:
    return json.loads(response.body)


class TestEnvelope:
    """Test envelope construction."""

    def test_success_counts_values(self):
        response = success("Listed.", ["a", {"id": "b"}])
        assert response.status_code == 200
        assert _body(response) == {
            "status": 200,
            "message": "Listed.",
            "count": 2,
            "values": ["a", {"id": "b"}],
        }

    def test_success_without_values(self):
        body = _body(success("Deleted."))
        assert body["count"] == 0
        assert body["values"] == []

    def test_error_has_only_status_and_message(self):
        response = error(404, "Rule 'x' not found.")
        assert response.status_code == 404
        assert _body(response) == {"status": 404, "message": "Rule 'x' not found."}


class TestErrorMapping:
    """Test that each error kind maps to one status code."""

    def test_status_table(self):
        assert STATUS_BY_KIND[ErrorKind.VALIDATION] == 400
        assert STATUS_BY_KIND[ErrorKind.NOT_FOUND] == 404
        assert STATUS_BY_KIND[ErrorKind.ALREADY_EXISTS] == 409
        assert STATUS_BY_KIND[ErrorKind.INTERNAL] == 500

    def test_conflict_is_distinct_from_not_found(self):
        assert STATUS_BY_KIND[ErrorKind.ALREADY_EXISTS] != STATUS_BY_KIND[ErrorKind.NOT_FOUND]

    def test_internal_error_is_prefixed(self):
        response = render_error(Err(ErrorKind.INTERNAL, "disk full"), "Unable to delete rulebook.")
        assert response.status_code == 500
        assert _body(response)["message"] == "Unable to delete rulebook. disk full"

    def test_client_errors_keep_detail(self):
        response = render_error(Err(ErrorKind.NOT_FOUND, "Rule 'x' not found."), "Unable to delete rule.")
        assert _body(response)["message"] == "Rule 'x' not found."
