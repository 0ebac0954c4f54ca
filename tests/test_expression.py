"""Tests for when-clause validation."""

import pytest

from rulebook_service.core.result import ErrorKind
from rulebook_service.rules.expression import WhenValidator, normalize


@pytest.fixture
def validator() -> WhenValidator:
    return WhenValidator()


class TestNormalize:
    def test_symbolic_boolean_operators(self):
        assert normalize("a && !b || c").split() == ["a", "and", "not", "b", "or", "c"]

    def test_not_equal_is_kept(self):
        assert normalize("a != 1") == "a != 1"

    def test_quoted_strings_untouched(self):
        assert normalize("name == 'a && b'") == "name == 'a && b'"

    def test_infix_string_operators(self):
        assert normalize('title contains "Chrome"') == 'contains(title, "Chrome")'

    def test_infix_operand_with_other_quote_inside(self):
        assert normalize('name contains "it\'s"') == 'contains(name, "it\'s")'

    def test_infix_words_inside_literal_untouched(self):
        assert normalize("msg == \"a contains 'b'\"") == "msg == \"a contains 'b'\""

    def test_infix_combined_with_boolean_operators(self):
        normalized = normalize("user.name startswith 'Al' && !(tags contains \"x\")")
        assert " ".join(normalized.split()) == "startswith(user.name, 'Al') and not (contains(tags, \"x\"))"


class TestWhenValidator:
    @pytest.mark.parametrize("expression", [
        "x > 5",
        "amount >= 100 && country == 'US'",
        "!flagged",
        "customer.age < 18 or customer.tier in ['gold', 'silver']",
        "len(name) > 3",
        'email endswith "@example.com"',
        "(a + b) * 2 > c",
        'name contains "it\'s"',
        "msg == \"a contains 'b'\"",
    ])
    def test_valid_expressions(self, validator, expression):
        assert validator.validate(expression).ok

    @pytest.mark.parametrize("expression", [
        "x >",
        "x > 5 &&",
        "((a)",
    ])
    def test_syntax_errors(self, validator, expression):
        outcome = validator.validate(expression)
        assert not outcome.ok
        assert outcome.kind is ErrorKind.VALIDATION
        assert "Invalid when clause" in outcome.detail

    @pytest.mark.parametrize("expression", [
        "__import__('os')",
        "open('/etc/passwd')",
        "x.__class__",
        "lambda: 1",
        "[y for y in items]",
    ])
    def test_disallowed_constructs(self, validator, expression):
        outcome = validator.validate(expression)
        assert not outcome.ok
        assert outcome.kind is ErrorKind.VALIDATION

    def test_empty_expression(self, validator):
        assert not validator.validate("   ").ok
