# -*- coding: utf-8 -*-
"""
Service for Payroll:
- calculate one (employee, period) pair: guards, pure engine, atomic persist
- batch calculation of a whole period (per-employee error capture)
- approve / reject / pay / cancel through an explicit transition table
- all DB access through repositories
"""
from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from payroll.exceptions import ConflictError, PayrollError
from payroll.models import Payroll, PayrollConcept, PayrollPeriod, EmployeeBenefit
from payroll.repositories import concept_repository as concept_repo
from payroll.repositories import employee_repository as employee_repo
from payroll.repositories import payroll_repository as repo
from payroll.repositories import period_repository as period_repo
from payroll.services import period_service
from payroll.services.audit_service import log_action
from payroll.services.calculation import (
    STATUTORY_CODES, CalculationInput, ConceptRule, PayrollComputation, compute_payroll,
)
from payroll.services.concept_service import ensure_system_concepts
from payroll.services.formula import expr_from_dict
from payroll.services.rates import PayrollRates, load_rates

logger = logging.getLogger(__name__)

P = Payroll.Status

PAYROLL_TRANSITIONS: Dict[str, set] = {
    P.DRAFT: {P.CALCULATED, P.CANCELLED},
    P.CALCULATED: {P.APPROVED, P.REJECTED, P.CANCELLED, P.DRAFT},
    P.APPROVED: {P.PAID, P.REJECTED},
    P.REJECTED: {P.DRAFT},
    P.PAID: set(),
    P.CANCELLED: set(),
}

# statuses a generic PATCH may set; the rest have dedicated actions
PATCHABLE_STATUSES = {P.DRAFT, P.CANCELLED}
INPUT_FIELDS = ("worked_days", "worked_hours", "overtime_hours", "unpaid_leave_days")
STANDARD_DAY_HOURS = Decimal("8")


# ====== State machine ======
def can_transition(current: str, target: str) -> bool:
    return target in PAYROLL_TRANSITIONS.get(current, set())


def ensure_payroll_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise ConflictError(f"Payroll cannot move from '{current}' to '{target}'.")


def generate_payroll_number(employee_id: int, period: PayrollPeriod) -> str:
    return f"PAY-{period.start_date.year:04d}{period.start_date.month:02d}-{employee_id:06d}"


# ====== Engine wiring ======
def _rule_from(concept: PayrollConcept, benefit: Optional[EmployeeBenefit] = None) -> ConceptRule:
    calc = concept.calculation_type
    value = concept.default_value
    if benefit is not None:
        if benefit.amount is not None:
            calc, value = PayrollConcept.CalculationType.FIXED, benefit.amount
        elif benefit.percentage is not None:
            calc, value = PayrollConcept.CalculationType.PERCENTAGE, benefit.percentage
    expression = None
    if calc == PayrollConcept.CalculationType.FORMULA and concept.compiled_formula:
        expression = expr_from_dict(concept.compiled_formula)
    return ConceptRule(
        code=concept.code,
        name=concept.name,
        type=concept.type,
        calculation_type=calc,
        value=value,
        expression=expression,
        calculation_base=concept.calculation_base,
        is_taxable=concept.is_taxable,
        affects_social_security=concept.affects_social_security,
        priority_order=concept.priority_order,
    )


def concept_rules_for(employee_id: int, period: PayrollPeriod) -> List[ConceptRule]:
    """Mandatory catalog concepts plus the employee's active assignments (assignment wins)."""
    rules: Dict[str, ConceptRule] = {}
    for concept in concept_repo.mandatory_active(exclude_codes=STATUTORY_CODES):
        rules[concept.code] = _rule_from(concept)
    for benefit in concept_repo.active_benefits_for(employee_id, period.start_date, period.end_date):
        if benefit.concept.code in STATUTORY_CODES:
            continue
        rules[benefit.concept.code] = _rule_from(benefit.concept, benefit)
    return list(rules.values())


def _detail_rows(comp: PayrollComputation) -> List[Dict[str, Any]]:
    ensure_system_concepts()
    codes = [ln.code for ln in comp.lines]
    concepts = {c.code: c for c in PayrollConcept.objects.filter(code__in=codes)}
    rows = []
    for ln in comp.lines:
        concept = concepts.get(ln.code)
        if concept is None:
            raise PayrollError(f"Payroll concept {ln.code} not found")
        rows.append({
            "concept": concept,
            "concept_type": ln.type,
            "quantity": ln.quantity,
            "rate": ln.rate,
            "base_amount": ln.base_amount,
            "amount": ln.amount,
            "calculation_details": ln.details[:255],
        })
    return rows


def _snapshot(payroll: Payroll) -> Dict[str, Any]:
    return {
        "status": payroll.status,
        "gross_salary": str(payroll.gross_salary),
        "total_deductions": str(payroll.total_deductions),
        "total_taxes": str(payroll.total_taxes),
        "net_salary": str(payroll.net_salary),
    }


def _already_final(payroll: Payroll) -> ConflictError:
    return ConflictError(
        f"Payroll {payroll.payroll_number} is already {payroll.status}; only draft payrolls can be recalculated."
    )


# ====== Business services ======
def calculate_payroll(
    *, employee_id: int, period_id: int, worked_days, worked_hours=None, overtime_hours=0,
    unpaid_leave_days=0, finalize: bool = True, actor_id: Optional[int] = None,
    rates: Optional[PayrollRates] = None, notes: Optional[str] = None,
) -> Payroll:
    """
    Calculate (or recalculate a draft) payroll for one employee and period.

    Raises:
        ObjectDoesNotExist: employee or period missing
        ConflictError: period not open, or a non-draft payroll already exists
        CalculationError: bad inputs, zero salary, unresolved formula variable
    """
    employee = employee_repo.get_by_id(employee_id)
    period = period_repo.get_by_id(period_id)
    period_service.ensure_calculable(period)
    existing = repo.find_for(employee.id, period.id)
    if existing is not None and existing.status != P.DRAFT:
        raise _already_final(existing)
    rates = rates or load_rates()

    worked_days = Decimal(str(worked_days))
    if worked_hours is None:
        worked_hours = worked_days * STANDARD_DAY_HOURS
    inp = CalculationInput(
        base_salary=employee.base_salary,
        worked_days=worked_days,
        worked_hours=Decimal(str(worked_hours)),
        overtime_hours=Decimal(str(overtime_hours or 0)),
        unpaid_leave_days=Decimal(str(unpaid_leave_days or 0)),
        salary_type=employee.salary_type,
        hourly_rate=employee.hourly_rate,
    )
    comp = compute_payroll(inp, concept_rules_for(employee.id, period), rates)
    position = employee_repo.current_position(employee.id)

    try:
        with transaction.atomic():
            payroll = repo.find_for(employee.id, period.id, for_update=True)
            if payroll is not None and payroll.status != P.DRAFT:
                raise _already_final(payroll)
            if payroll is None:
                payroll = repo.create({
                    "employee": employee,
                    "period": period,
                    "payroll_number": generate_payroll_number(employee.id, period),
                    "status": P.DRAFT,
                })
            before = _snapshot(payroll)

            patch = {
                "department": employee.department,
                "position": position,
                "worked_days": inp.worked_days,
                "worked_hours": inp.worked_hours,
                "regular_hours": comp.regular_hours,
                "overtime_hours": inp.overtime_hours,
                "unpaid_leave_days": inp.unpaid_leave_days,
                "base_salary": employee.base_salary,
                "overtime_amount": comp.overtime_amount,
                "gross_salary": comp.gross_salary,
                "total_earnings": comp.total_earnings,
                "total_deductions": comp.total_deductions,
                "total_taxes": comp.total_taxes,
                "net_salary": comp.net_salary,
                "employer_contributions": comp.employer_contributions,
                "employer_breakdown": comp.employer_breakdown,
                "calculated_at": timezone.now(),
                "status": P.CALCULATED if finalize else P.DRAFT,
            }
            if notes is not None:
                patch["notes"] = notes
            payroll = repo.save_fields(payroll, patch)
            repo.replace_details(payroll, _detail_rows(comp))
            period_repo.refresh_totals(period.id)
    except IntegrityError as e:
        # concurrent insert of the same (employee, period) pair
        raise ConflictError("A payroll for this employee and period already exists.") from e

    log_action(actor_id=actor_id, action="payroll.calculate", object_type="Payroll", object_id=payroll.id,
               before=before, after=_snapshot(payroll))
    logger.info("Payroll calculated for employee %s, period %s: net=%s", employee.id, period.id, payroll.net_salary)
    return repo.with_details(payroll.id)


def create_payroll(*, employee_id: int, period_id: int, notes: str = "", actor_id: Optional[int] = None,
                   **inputs) -> Payroll:
    """Register an empty draft payroll for later calculation."""
    employee = employee_repo.get_by_id(employee_id)
    period = period_repo.get_by_id(period_id)
    period_service.ensure_calculable(period)
    if repo.find_for(employee.id, period.id):
        raise ConflictError("A payroll for this employee and period already exists.")
    data = {
        "employee": employee,
        "period": period,
        "payroll_number": generate_payroll_number(employee.id, period),
        "base_salary": employee.base_salary,
        "department": employee.department,
        "position": employee_repo.current_position(employee.id),
        "status": P.DRAFT,
        "notes": notes or "",
    }
    data.update({k: v for k, v in inputs.items() if k in INPUT_FIELDS and v is not None})
    try:
        obj = repo.create(data)
    except IntegrityError as e:
        raise ConflictError("A payroll for this employee and period already exists.") from e
    log_action(actor_id=actor_id, action="payroll.create", object_type="Payroll", object_id=obj.id,
               after=_snapshot(obj))
    return obj


def update_payroll(*, payroll_id: int, actor_id: Optional[int] = None, recalculate: bool = False,
                   status: Optional[str] = None, notes: Optional[str] = None, **inputs) -> Payroll:
    inputs = {k: v for k, v in inputs.items() if k in INPUT_FIELDS and v is not None}

    if recalculate:
        obj = repo.get_by_id(payroll_id)
        if obj.status != P.DRAFT:
            raise ConflictError(f"Only draft payrolls can be recalculated (current: {obj.status}).")
        params = {k: inputs.get(k, getattr(obj, k)) for k in INPUT_FIELDS}
        return calculate_payroll(
            employee_id=obj.employee_id, period_id=obj.period_id, actor_id=actor_id,
            finalize=(status == P.CALCULATED) if status else True, notes=notes, **params,
        )

    with transaction.atomic():
        obj = repo.lock(payroll_id)
        before = _snapshot(obj)
        patch: Dict[str, Any] = {}
        if inputs:
            if obj.status != P.DRAFT:
                raise ConflictError("Attendance inputs can only be edited on draft payrolls.")
            patch.update(inputs)
        if notes is not None:
            patch["notes"] = notes
        if status and status != obj.status:
            if status not in PATCHABLE_STATUSES:
                raise ValidationError({"status": [f"Use the dedicated action to move a payroll to '{status}'."]})
            ensure_payroll_transition(obj.status, status)
            patch["status"] = status
        obj = repo.save_fields(obj, patch)
        if "status" in patch:
            period_repo.refresh_totals(obj.period_id)
    log_action(actor_id=actor_id, action="payroll.update", object_type="Payroll", object_id=obj.id,
               before=before, after=_snapshot(obj))
    return repo.with_details(obj.id)


@transaction.atomic
def delete_payroll(*, payroll_id: int, actor_id: Optional[int] = None) -> None:
    obj = repo.lock(payroll_id)
    if obj.status != P.DRAFT:
        raise ConflictError(f"Only draft payrolls can be deleted (current: {obj.status}).")
    period_id = obj.period_id
    log_action(actor_id=actor_id, action="payroll.delete", object_type="Payroll", object_id=obj.id,
               before=_snapshot(obj))
    repo.delete(obj)
    period_repo.refresh_totals(period_id)


@transaction.atomic
def approve_payroll(*, payroll_id: int, approver_id: Optional[int] = None) -> Payroll:
    obj = repo.lock(payroll_id)
    if obj.status != P.CALCULATED:
        raise ConflictError(f"Only calculated payrolls can be approved (current: {obj.status}).")
    obj = repo.save_fields(obj, {"status": P.APPROVED, "approved_by": approver_id, "approved_at": timezone.now()})
    log_action(actor_id=approver_id, action="payroll.approve", object_type="Payroll", object_id=obj.id,
               before={"status": P.CALCULATED}, after={"status": P.APPROVED})
    logger.info("Payroll %s approved by %s", obj.id, approver_id)
    return obj


@transaction.atomic
def reject_payroll(*, payroll_id: int, rejection_reason: str, actor_id: Optional[int] = None) -> Payroll:
    if not (rejection_reason or "").strip():
        raise ValidationError({"rejection_reason": ["This field is required."]})
    obj = repo.lock(payroll_id)
    if obj.status not in (P.CALCULATED, P.APPROVED):
        raise ConflictError(f"Only calculated or approved payrolls can be rejected (current: {obj.status}).")
    before = obj.status
    notes = f"{obj.notes}\n" if obj.notes else ""
    obj = repo.save_fields(obj, {
        "status": P.REJECTED,
        "rejection_reason": rejection_reason.strip(),
        "notes": f"{notes}Rejected: {rejection_reason.strip()}",
        "approved_by": None,
        "approved_at": None,
        "rejected_at": timezone.now(),
    })
    period_repo.refresh_totals(obj.period_id)
    log_action(actor_id=actor_id, action="payroll.reject", object_type="Payroll", object_id=obj.id,
               before={"status": before}, after={"status": P.REJECTED, "reason": obj.rejection_reason})
    logger.info("Payroll %s rejected", obj.id)
    return obj


@transaction.atomic
def mark_paid(*, payroll_id: int, actor_id: Optional[int] = None) -> Payroll:
    obj = repo.lock(payroll_id)
    ensure_payroll_transition(obj.status, P.PAID)
    obj = repo.save_fields(obj, {"status": P.PAID, "paid_at": timezone.now()})
    log_action(actor_id=actor_id, action="payroll.pay", object_type="Payroll", object_id=obj.id,
               before={"status": P.APPROVED}, after={"status": P.PAID})
    return obj


def approve_period(*, period_id: int, approver_id: Optional[int] = None) -> Dict[str, Any]:
    period = period_repo.get_by_id(period_id)
    count = repo.bulk_approve(period.id, approver_id)
    log_action(actor_id=approver_id, action="period.approve_payrolls", object_type="PayrollPeriod",
               object_id=period.id, after={"approved": count})
    logger.info("Period %s: %s payroll(s) approved by %s", period.id, count, approver_id)
    return {"period_id": period.id, "approved": count}


def _default_days(period: PayrollPeriod, rates: PayrollRates) -> Decimal:
    if period.period_type == PayrollPeriod.PeriodType.MONTHLY:
        return rates.standard_period_days
    return min(Decimal(period.days), rates.standard_period_days)


def calculate_period(*, period_id: int, actor_id: Optional[int] = None,
                     entries: Optional[Iterable[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """
    Calculate every payable employee of a period.

    `entries` may carry per-employee attendance ({employee_id, worked_days, ...});
    employees without an entry get a full period. One failing employee never
    aborts the batch: its error is reported and the rest continue.
    """
    period = period_repo.get_by_id(period_id)
    period_service.ensure_calculable(period)
    period = period_service.mark_processing(period_id=period.id, actor_id=actor_id)
    rates = load_rates()
    by_employee = {int(e["employee_id"]): e for e in (entries or [])}

    results: Dict[str, Any] = {"period_id": period.id, "processed": 0, "errors": 0, "skipped": 0, "details": []}
    for employee in employee_repo.payable_for_period(period.start_date, period.end_date):
        existing = repo.find_for(employee.id, period.id)
        if existing is not None and existing.status != P.DRAFT:
            results["skipped"] += 1
            results["details"].append({"employee_id": employee.id, "status": "skipped", "payroll_id": existing.id,
                                       "message": f"already {existing.status}"})
            continue
        entry = by_employee.get(employee.id, {})
        days = entry.get("worked_days", _default_days(period, rates))
        try:
            payroll = calculate_payroll(
                employee_id=employee.id,
                period_id=period.id,
                worked_days=days,
                worked_hours=entry.get("worked_hours"),
                overtime_hours=entry.get("overtime_hours", 0),
                unpaid_leave_days=entry.get("unpaid_leave_days", 0),
                actor_id=actor_id,
                rates=rates,
            )
        except (PayrollError, ValidationError, ObjectDoesNotExist) as e:
            results["errors"] += 1
            message = getattr(e, "message", None) or str(e)
            results["details"].append({"employee_id": employee.id, "status": "error", "message": message})
            logger.error("Error processing payroll for employee %s: %s", employee.id, message)
            continue
        results["processed"] += 1
        results["details"].append({
            "employee_id": employee.id,
            "payroll_id": payroll.id,
            "status": "success",
            "net_salary": str(payroll.net_salary),
        })

    period_repo.refresh_totals(period.id)
    logger.info("Period %s batch: %s processed, %s errors, %s skipped",
                period.id, results["processed"], results["errors"], results["skipped"])
    return results
