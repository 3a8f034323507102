# -*- coding: utf-8 -*-
"""
Gross-to-net payroll engine (pure: no DB access).

payroll_service loads the employee, the applicable concepts and the rates,
calls ``compute_payroll`` and persists the result in one transaction.

Order of work:
  1. pro-rated salary (monthly: by worked days, hourly: by hours)
  2. overtime, transport allowance, earning / benefit concepts
  3. social security on the contribution base (IBC)
  4. other deduction concepts, unpaid leave
  5. withholding tax on (taxable earnings - social security) in UVT
  6. employer contributions, totals, net clamp
Every amount is quantised to cents with ROUND_HALF_UP.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from payroll.exceptions import CalculationError, FormulaError
from payroll.services.formula import Expr
from payroll.services.rates import PayrollRates

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# statutory concept codes written by the engine itself
SALARY = "SALARIO_BASE"
OVERTIME = "HORAS_EXTRA"
TRANSPORT = "SUBSIDIO_TRANSPORTE"
HEALTH = "SALUD_EMPLEADO"
PENSION = "PENSION_EMPLEADO"
SOLIDARITY = "FONDO_SOLIDARIDAD"
WITHHOLDING = "RETENCION_FUENTE"
UNPAID_LEAVE = "LICENCIA_NO_REMUNERADA"

STATUTORY_CODES = (SALARY, OVERTIME, TRANSPORT, HEALTH, PENSION, SOLIDARITY, WITHHOLDING, UNPAID_LEAVE)

BUILTIN_VARIABLES = (
    "BASE_SALARY", "GROSS_SALARY", "SOCIAL_SECURITY_BASE",
    "WORKED_DAYS", "WORKED_HOURS", "OVERTIME_HOURS", "MINIMUM_WAGE", "UVT",
)

EARNING_TYPES = ("earning", "benefit")


def q2(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ============================
# Inputs / outputs
# ============================
@dataclass(frozen=True)
class CalculationInput:
    base_salary: Decimal
    worked_days: Decimal
    worked_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    unpaid_leave_days: Decimal = ZERO
    salary_type: str = "monthly"
    hourly_rate: Optional[Decimal] = None


@dataclass(frozen=True)
class ConceptRule:
    """What the engine needs to know about one non-statutory concept."""
    code: str
    type: str
    calculation_type: str
    value: Optional[Decimal] = None
    expression: Optional[Expr] = None
    calculation_base: str = "base_salary"
    is_taxable: bool = True
    affects_social_security: bool = True
    priority_order: int = 100
    name: str = ""


@dataclass
class ComputedLine:
    code: str
    type: str
    amount: Decimal
    quantity: Decimal = Decimal("1")
    rate: Optional[Decimal] = None
    base_amount: Optional[Decimal] = None
    details: str = ""
    statutory: bool = False


@dataclass
class PayrollComputation:
    lines: List[ComputedLine] = field(default_factory=list)
    regular_hours: Decimal = ZERO
    prorated_salary: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    social_security_base: Decimal = ZERO
    taxable_base: Decimal = ZERO
    total_earnings: Decimal = ZERO
    gross_salary: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_taxes: Decimal = ZERO
    net_salary: Decimal = ZERO
    employer_contributions: Decimal = ZERO
    employer_breakdown: Dict[str, Any] = field(default_factory=dict)

    def line(self, code: str) -> Optional[ComputedLine]:
        return next((x for x in self.lines if x.code == code), None)

    def amount(self, code: str) -> Decimal:
        ln = self.line(code)
        return ln.amount if ln else ZERO


# ============================
# Withholding
# ============================
def withholding_tax(taxable_amount: Decimal, rates: PayrollRates) -> Decimal:
    """Monthly withholding for a taxable amount in currency, via the UVT table."""
    taxable_amount = Decimal(taxable_amount)
    if taxable_amount <= 0:
        return ZERO
    uvt = taxable_amount / rates.uvt_value
    for bracket in rates.withholding_brackets:
        if bracket.contains(uvt):
            tax_uvt = (uvt - bracket.min_uvt) * bracket.rate + bracket.fixed_uvt
            return q2(tax_uvt * rates.uvt_value)
    return ZERO


# ============================
# Helpers
# ============================
def _sorted(rules: Iterable[ConceptRule], types: Iterable[str]) -> List[ConceptRule]:
    wanted = set(types)
    return sorted((r for r in rules if r.type in wanted), key=lambda r: (r.priority_order, r.code))


def _rule_amount(rule: ConceptRule, context: Dict[str, Decimal], prorated: Decimal) -> ComputedLine:
    if rule.calculation_type == "fixed":
        if rule.value is None:
            raise CalculationError(f"Concept {rule.code} has no fixed amount")
        return ComputedLine(rule.code, rule.type, q2(rule.value), details="fixed")

    if rule.calculation_type == "percentage":
        if rule.value is None:
            raise CalculationError(f"Concept {rule.code} has no percentage")
        base = prorated if rule.calculation_base == "base_salary" else context["GROSS_SALARY"]
        return ComputedLine(
            rule.code, rule.type, q2(base * rule.value / HUNDRED),
            rate=rule.value, base_amount=q2(base), details=f"{rule.value}% of {rule.calculation_base}",
        )

    if rule.calculation_type == "formula":
        if rule.expression is None:
            raise CalculationError(f"Concept {rule.code} has no compiled formula")
        try:
            value = rule.expression.evaluate(context)
        except FormulaError as e:
            raise CalculationError(f"Concept {rule.code}: {e.message}", errors=e.errors) from e
        return ComputedLine(rule.code, rule.type, q2(value), details="formula")

    raise CalculationError(f"Concept {rule.code} has unknown calculation type {rule.calculation_type!r}")


def _validate(inp: CalculationInput) -> None:
    if inp.base_salary is None or Decimal(inp.base_salary) <= 0:
        raise CalculationError("Employee base salary must be greater than 0", errors={"base_salary": ["must be > 0"]})
    for name in ("worked_days", "worked_hours", "overtime_hours", "unpaid_leave_days"):
        if Decimal(getattr(inp, name) or 0) < 0:
            raise CalculationError(f"{name} cannot be negative", errors={name: ["must be >= 0"]})


# ============================
# Engine
# ============================
def compute_payroll(inp: CalculationInput, rules: Iterable[ConceptRule], rates: PayrollRates) -> PayrollComputation:
    _validate(inp)
    rules = list(rules)
    res = PayrollComputation()

    base = Decimal(inp.base_salary)
    std_days = rates.standard_period_days
    days = min(Decimal(inp.worked_days or 0), std_days)
    hours = Decimal(inp.worked_hours or 0)
    ot_hours = Decimal(inp.overtime_hours or 0)

    # -- 1. salary
    if inp.salary_type == "hourly":
        hour_value = Decimal(inp.hourly_rate) if inp.hourly_rate else base / rates.hourly_divisor
        prorated = q2(hour_value * hours)
        salary_line = ComputedLine(SALARY, "earning", prorated, quantity=hours, rate=q2(hour_value),
                                   base_amount=q2(base), details="hourly", statutory=True)
        ot_hour_value = hour_value
    else:
        prorated = q2(base * days / std_days)
        salary_line = ComputedLine(SALARY, "earning", prorated, quantity=days, base_amount=q2(base),
                                   details=f"{days}/{std_days} days", statutory=True)
        ot_hour_value = base / rates.overtime_hour_divisor
    res.prorated_salary = prorated
    res.regular_hours = hours
    res.lines.append(salary_line)

    ss_base = prorated
    taxable = prorated
    gross = prorated

    # -- 2. overtime
    if ot_hours > 0:
        ot_rate = ot_hour_value * rates.overtime_multiplier
        ot_amount = q2(ot_hours * ot_rate)
        res.lines.append(ComputedLine(OVERTIME, "earning", ot_amount, quantity=ot_hours, rate=q2(ot_rate),
                                      details=f"x{rates.overtime_multiplier}", statutory=True))
        res.overtime_amount = ot_amount
        ss_base += ot_amount
        taxable += ot_amount
        gross += ot_amount

    # transport allowance: not salary, so outside IBC and tax base
    if inp.salary_type != "hourly" and base <= rates.transport_allowance_cap_wages * rates.minimum_wage and days > 0:
        transport = q2(rates.transport_allowance * days / std_days)
        res.lines.append(ComputedLine(TRANSPORT, "earning", transport, quantity=days, rate=rates.transport_allowance,
                                      details="transport allowance", statutory=True))
        gross += transport

    context: Dict[str, Decimal] = {
        "BASE_SALARY": base,
        "WORKED_DAYS": days,
        "WORKED_HOURS": hours,
        "OVERTIME_HOURS": ot_hours,
        "MINIMUM_WAGE": rates.minimum_wage,
        "UVT": rates.uvt_value,
    }
    for code in STATUTORY_CODES:
        context[code] = ZERO
    for ln in res.lines:
        context[ln.code] = ln.amount
    context["GROSS_SALARY"] = gross

    # -- 2b. earning / benefit concepts
    for rule in _sorted(rules, EARNING_TYPES):
        ln = _rule_amount(rule, context, prorated)
        context[rule.code] = max(ln.amount, ZERO)
        if ln.amount <= 0:
            continue
        res.lines.append(ln)
        gross += ln.amount
        context["GROSS_SALARY"] = gross
        if rule.affects_social_security:
            ss_base += ln.amount
        if rule.is_taxable:
            taxable += ln.amount

    res.gross_salary = q2(gross)
    res.total_earnings = res.gross_salary
    res.social_security_base = q2(ss_base)
    context["SOCIAL_SECURITY_BASE"] = res.social_security_base

    # -- 3. social security (employee side)
    health = q2(ss_base * rates.health_employee)
    pension = q2(ss_base * rates.pension_employee)
    res.lines.append(ComputedLine(HEALTH, "deduction", health, rate=rates.health_employee,
                                  base_amount=res.social_security_base, details="health", statutory=True))
    res.lines.append(ComputedLine(PENSION, "deduction", pension, rate=rates.pension_employee,
                                  base_amount=res.social_security_base, details="pension", statutory=True))
    social_security = health + pension
    if ss_base >= rates.solidarity_threshold_wages * rates.minimum_wage:
        solidarity = q2(ss_base * rates.solidarity_fund)
        res.lines.append(ComputedLine(SOLIDARITY, "deduction", solidarity, rate=rates.solidarity_fund,
                                      base_amount=res.social_security_base, details="solidarity fund", statutory=True))
        social_security += solidarity
    for ln in res.lines:
        context[ln.code] = ln.amount

    # -- 4. other deductions
    if inp.unpaid_leave_days and Decimal(inp.unpaid_leave_days) > 0:
        leave_days = Decimal(inp.unpaid_leave_days)
        daily = base / std_days
        res.lines.append(ComputedLine(UNPAID_LEAVE, "deduction", q2(daily * leave_days), quantity=leave_days,
                                      rate=q2(daily), details="unpaid leave"))
        context[UNPAID_LEAVE] = res.lines[-1].amount

    for rule in _sorted(rules, ("deduction",)):
        ln = _rule_amount(rule, context, prorated)
        context[rule.code] = max(ln.amount, ZERO)
        if ln.amount <= 0:
            continue
        res.lines.append(ln)

    # -- 5. taxes
    res.taxable_base = q2(max(taxable - social_security, ZERO))
    tax = withholding_tax(res.taxable_base, rates)
    if tax > 0:
        res.lines.append(ComputedLine(WITHHOLDING, "tax", tax, base_amount=res.taxable_base,
                                      details=f"{q2(res.taxable_base / rates.uvt_value)} UVT", statutory=True))
    context[WITHHOLDING] = tax
    for rule in _sorted(rules, ("tax",)):
        ln = _rule_amount(rule, context, prorated)
        context[rule.code] = max(ln.amount, ZERO)
        if ln.amount <= 0:
            continue
        res.lines.append(ln)

    # -- 6. employer side, on IBC
    breakdown: Dict[str, Any] = {}
    employer_total = ZERO
    for key, rate in rates.employer_rates.items():
        amount = q2(ss_base * rate)
        breakdown[key] = str(amount)
        employer_total += amount
    res.employer_contributions = q2(employer_total)
    breakdown["provisions"] = _provisions(res, rates)
    res.employer_breakdown = breakdown

    _totals(res)
    return res


def _provisions(res: PayrollComputation, rates: PayrollRates) -> Dict[str, str]:
    # severance and service bonus include the transport allowance, vacation does not
    salary_part = res.social_security_base
    with_transport = salary_part + res.amount(TRANSPORT)
    severance = q2(with_transport * rates.severance)
    return {
        "severance": str(severance),
        "severance_interest": str(q2(severance * rates.severance_interest)),
        "service_bonus": str(q2(with_transport * rates.service_bonus)),
        "vacation": str(q2(salary_part * rates.vacation)),
    }


def _totals(res: PayrollComputation) -> None:
    deductions = [ln for ln in res.lines if ln.type == "deduction"]
    taxes = [ln for ln in res.lines if ln.type == "tax"]
    res.total_deductions = q2(sum((ln.amount for ln in deductions), ZERO))
    res.total_taxes = q2(sum((ln.amount for ln in taxes), ZERO))
    excess = res.total_deductions + res.total_taxes - res.gross_salary

    # Net never goes below zero: trim discretionary lines, latest first.
    if excess > 0:
        for ln in reversed([x for x in res.lines if x.type in ("deduction", "tax") and not x.statutory]):
            cut = min(ln.amount, excess)
            ln.amount = q2(ln.amount - cut)
            ln.details = (ln.details + " (capped)").strip()
            excess -= cut
            if excess <= 0:
                break
        if excess > 0:
            raise CalculationError("Statutory deductions exceed gross salary")
        res.lines = [ln for ln in res.lines if ln.amount > 0 or ln.code == SALARY]
        res.total_deductions = q2(sum((ln.amount for ln in res.lines if ln.type == "deduction"), ZERO))
        res.total_taxes = q2(sum((ln.amount for ln in res.lines if ln.type == "tax"), ZERO))

    res.net_salary = q2(res.gross_salary - res.total_deductions - res.total_taxes)
