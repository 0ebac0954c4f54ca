"""
Syntax validation for rule ``when`` clauses.

The condition language is a restricted expression grammar parsed with the
``ast`` module. Besides Python spelling it accepts ``&&``, ``||`` and ``!``,
and infix string operators such as ``name contains "abc"``.
"""

from __future__ import annotations

import ast
import re

from rulebook_service.core.result import Ok, Outcome, invalid

FUNCTIONS = frozenset({
    "contains",
    "matches",
    "startswith",
    "endswith",
    "len",
    "lower",
    "upper",
})

_INFIX_OPERATORS = ("matches", "contains", "startswith", "endswith")

_STRING_LITERAL = re.compile(r"(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')")

# Left operand and operator at the end of a code chunk; the literal follows.
_INFIX = re.compile(rf"([A-Za-z0-9_\.]+)\s+({'|'.join(_INFIX_OPERATORS)})\s+$")

_ALLOWED_NODES = (
    ast.Expression,
    ast.BoolOp, ast.And, ast.Or,
    ast.UnaryOp, ast.Not, ast.USub, ast.UAdd,
    ast.BinOp, ast.Add, ast.Sub, ast.Mult, ast.Div, ast.Mod, ast.FloorDiv, ast.Pow,
    ast.Compare, ast.Eq, ast.NotEq, ast.Lt, ast.LtE, ast.Gt, ast.GtE,
    ast.In, ast.NotIn, ast.Is, ast.IsNot,
    ast.IfExp,
    ast.Name, ast.Load, ast.Attribute, ast.Subscript, ast.Slice,
    ast.Constant, ast.List, ast.Tuple,
    ast.Call,
)


class WhenValidator:
    """Checks that a condition parses under the expression grammar."""

    def validate(self, expression: str) -> Outcome[str]:
        """Validate a when clause.

        Returns:
            Ok(normalized expression) or a VALIDATION error naming the cause.
        """
        if expression is None or not str(expression).strip():
            return invalid("Invalid when clause: expression is empty.")

        normalized = normalize(str(expression))
        try:
            tree = ast.parse(normalized, mode="eval")
        except SyntaxError as e:
            return invalid(f"Invalid when clause '{expression}': {e.msg}.")

        problem = _first_disallowed(tree)
        if problem:
            return invalid(f"Invalid when clause '{expression}': {problem}.")
        return Ok(normalized)


def normalize(expression: str) -> str:
    """Rewrite operator spellings into Python expression syntax.

    Quoted string literals are left untouched.
    """
    # Even indexes are code, odd indexes are complete string literals.
    parts = _STRING_LITERAL.split(expression)
    for i in range(0, len(parts), 2):
        chunk = parts[i]
        chunk = chunk.replace("&&", " and ").replace("||", " or ")
        chunk = re.sub(r"!(?!=)", " not ", chunk)
        if i + 1 < len(parts):
            match = _INFIX.search(chunk)
            if match:
                chunk = chunk[:match.start()] + f"{match.group(2)}({match.group(1)}, "
                parts[i + 1] += ")"
        parts[i] = chunk
    return "".join(parts).strip()


def _first_disallowed(tree: ast.AST) -> str | None:
    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            return f"unsupported syntax '{type(node).__name__}'"
        if isinstance(node, ast.Name) and node.id.startswith("__"):
            return f"name '{node.id}' is not allowed"
        if isinstance(node, ast.Attribute) and node.attr.startswith("_"):
            return f"attribute '{node.attr}' is not allowed"
        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
                return "only the functions " + ", ".join(sorted(FUNCTIONS)) + " may be called"
            if node.keywords:
                return "keyword arguments are not supported"
    return None
