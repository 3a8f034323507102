import pytest
from decimal import Decimal
from payroll.exceptions import FormulaError
from payroll.services import formula


def test_parse_and_evaluate_with_placeholders():
    expr = formula.parse("{SALARIO_BASE} * 0.1 + {HORAS_EXTRA} / 2")
    value = expr.evaluate({"SALARIO_BASE": Decimal("3000000"), "HORAS_EXTRA": Decimal("100")})
    assert value == Decimal("300050")
    assert expr.variables() == {"SALARIO_BASE", "HORAS_EXTRA"}

def test_unary_minus_and_parentheses():
    expr = formula.parse("-({A} - 10) * 2")
    assert expr.evaluate({"A": Decimal("15")}) == Decimal("-10")

def test_extract_variables_keeps_first_appearance_order():
    assert formula.extract_variables("{B} + {A} * {B}") == ["B", "A"]
    assert formula.missing_variables("{B} + {A}", ["A"]) == ["B"]

@pytest.mark.parametrize("text", [
    "",
    "{A} ** 2",
    "__import__('os')",
    "abs({A})",
    "{A} > 1",
    "SALARIO_BASE * 2",
    "{lower} + 1",
    "'text'",
    "{A} +",
])
def test_rejected_expressions(text):
    with pytest.raises(FormulaError):
        formula.parse(text)

def test_unknown_variable_at_evaluation_lists_code():
    expr = formula.parse("{MISSING} + 1")
    with pytest.raises(FormulaError) as exc:
        expr.evaluate({})
    assert exc.value.errors == {"missing": ["MISSING"]}

def test_division_by_zero_is_a_formula_error():
    with pytest.raises(FormulaError):
        formula.parse("{A} / {B}").evaluate({"A": Decimal("1"), "B": Decimal("0")})

def test_compiled_form_rebuilds_same_expression():
    text = "({SALARIO_BASE} + {HORAS_EXTRA}) * 0.04"
    compiled = formula.compile_formula(text)
    rebuilt = formula.expr_from_dict(compiled)
    ctx = {"SALARIO_BASE": Decimal("1000"), "HORAS_EXTRA": Decimal("500")}
    assert rebuilt.evaluate(ctx) == formula.parse(text).evaluate(ctx) == Decimal("60.00")

def test_corrupted_compiled_formula():
    with pytest.raises(FormulaError):
        formula.expr_from_dict({"op": "**", "left": {"lit": "1"}, "right": {"lit": "2"}})
