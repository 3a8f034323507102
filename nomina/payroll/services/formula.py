# -*- coding: utf-8 -*-
"""
Restricted arithmetic expressions for formula concepts.

A formula references other amounts with ``{CODE}`` placeholders, e.g.
``{SALARIO_BASE} * 0.1 + {HORAS_EXTRA} / 2``. It is parsed once (when the
concept is saved) into a small typed tree and evaluated later against a
``{code: Decimal}`` context.

Allowed:
  - ``{CODE}`` placeholders (upper-case letters, digits, underscore)
  - numeric literals
  - ``+ - * /``, unary minus, parentheses

Rejected: bare names, calls, attributes, power, comparisons, anything else.
"""
from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Set, Union

from payroll.exceptions import FormulaError

PLACEHOLDER_RE = re.compile(r"\{([A-Z0-9_]+)\}")
_NAME_PREFIX = "_v_"

_OPS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
}


# ============================
# Expression tree
# ============================
@dataclass(frozen=True)
class Literal:
    value: Decimal

    def variables(self) -> Set[str]:
        return set()

    def evaluate(self, context: Mapping[str, Decimal]) -> Decimal:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"lit": str(self.value)}


@dataclass(frozen=True)
class Variable:
    code: str

    def variables(self) -> Set[str]:
        return {self.code}

    def evaluate(self, context: Mapping[str, Decimal]) -> Decimal:
        if self.code not in context:
            raise FormulaError(f"Unresolved variable {{{self.code}}}", errors={"missing": [self.code]})
        return Decimal(context[self.code])

    def to_dict(self) -> Dict[str, Any]:
        return {"var": self.code}


@dataclass(frozen=True)
class Negate:
    operand: "Expr"

    def variables(self) -> Set[str]:
        return self.operand.variables()

    def evaluate(self, context: Mapping[str, Decimal]) -> Decimal:
        return -self.operand.evaluate(context)

    def to_dict(self) -> Dict[str, Any]:
        return {"neg": self.operand.to_dict()}


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Expr"
    right: "Expr"

    def variables(self) -> Set[str]:
        return self.left.variables() | self.right.variables()

    def evaluate(self, context: Mapping[str, Decimal]) -> Decimal:
        a = self.left.evaluate(context)
        b = self.right.evaluate(context)
        if self.op == "+":
            return a + b
        if self.op == "-":
            return a - b
        if self.op == "*":
            return a * b
        if b == 0:
            raise FormulaError("Division by zero in formula")
        try:
            return a / b
        except (DivisionByZero, InvalidOperation) as e:
            raise FormulaError(f"Invalid division in formula: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "left": self.left.to_dict(), "right": self.right.to_dict()}


Expr = Union[Literal, Variable, Negate, BinaryOp]


# ============================
# Parsing
# ============================
def extract_variables(text: str) -> List[str]:
    """Placeholder codes in order of first appearance (no parsing)."""
    seen: List[str] = []
    for code in PLACEHOLDER_RE.findall(text or ""):
        if code not in seen:
            seen.append(code)
    return seen


def missing_variables(text: str, known: Iterable[str]) -> List[str]:
    known_set = set(known)
    return [code for code in extract_variables(text) if code not in known_set]


def parse(text: str) -> Expr:
    if not text or not text.strip():
        raise FormulaError("Formula is empty")

    source = PLACEHOLDER_RE.sub(lambda m: _NAME_PREFIX + m.group(1), text)
    if "{" in source or "}" in source:
        raise FormulaError("Malformed placeholder: use {CODE} with upper-case letters, digits or underscore")

    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as e:
        raise FormulaError(f"Syntax error: {e.msg}") from e
    return _convert(tree.body)


def _convert(node: ast.AST) -> Expr:
    if isinstance(node, ast.BinOp):
        op = _OPS.get(type(node.op))
        if op is None:
            raise FormulaError(f"Operator not allowed: {type(node.op).__name__}")
        return BinaryOp(op, _convert(node.left), _convert(node.right))

    if isinstance(node, ast.UnaryOp):
        if isinstance(node.op, ast.USub):
            return Negate(_convert(node.operand))
        if isinstance(node.op, ast.UAdd):
            return _convert(node.operand)
        raise FormulaError(f"Operator not allowed: {type(node.op).__name__}")

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(f"Only numeric literals are allowed, got {node.value!r}")
        return Literal(Decimal(str(node.value)))

    if isinstance(node, ast.Name):
        if node.id.startswith(_NAME_PREFIX):
            return Variable(node.id[len(_NAME_PREFIX):])
        raise FormulaError(f"Unknown name '{node.id}': wrap concept codes in braces, e.g. {{{node.id.upper()}}}")

    raise FormulaError(f"Expression not allowed: {type(node).__name__}")


# ============================
# Storage
# ============================
def expr_from_dict(data: Mapping[str, Any]) -> Expr:
    if "lit" in data:
        return Literal(Decimal(data["lit"]))
    if "var" in data:
        return Variable(data["var"])
    if "neg" in data:
        return Negate(expr_from_dict(data["neg"]))
    if "op" in data and data["op"] in _OPS.values():
        return BinaryOp(data["op"], expr_from_dict(data["left"]), expr_from_dict(data["right"]))
    raise FormulaError(f"Corrupted compiled formula: {dict(data)!r}")


def compile_formula(text: str) -> Dict[str, Any]:
    return parse(text).to_dict()
