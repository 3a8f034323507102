# -*- coding: utf-8 -*-
"""
Service for PayrollPeriod: date rules, derived fields and the status machine.

    draft ──open──▶ open ──process──▶ processing
                     │                   │
                     └──────close────────┴──▶ closed ──reopen──▶ open
"""
from __future__ import annotations
from datetime import date
from typing import Any, Dict, Optional, Tuple
import logging
import math

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from payroll.exceptions import ConflictError
from payroll.models import PayrollPeriod, Payroll
from payroll.repositories import period_repository as repo
from payroll.services.audit_service import log_action

logger = logging.getLogger(__name__)

S = PayrollPeriod.Status
PeriodType = PayrollPeriod.PeriodType

# action -> (allowed source statuses, target status)
PERIOD_ACTIONS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "open": ((S.DRAFT,), S.OPEN),
    "process": ((S.OPEN,), S.PROCESSING),
    "close": ((S.OPEN, S.PROCESSING), S.CLOSED),
    "reopen": ((S.CLOSED,), S.OPEN),
}

CALCULABLE_STATUSES = (S.OPEN, S.PROCESSING)
PENDING_PAYROLL_STATUSES = (Payroll.Status.DRAFT,)
EDITABLE_FIELDS = {"name", "period_type", "start_date", "end_date", "pay_date", "notes"}


# ====== State machine ======
def next_status(current: str, action: str) -> str:
    """Target status of `action` from `current`, or ConflictError when not allowed."""
    if action not in PERIOD_ACTIONS:
        raise ValueError(f"Unknown period action: {action}")
    sources, target = PERIOD_ACTIONS[action]
    if current not in sources:
        allowed = ", ".join(sources)
        raise ConflictError(f"Cannot {action} a period in status '{current}' (allowed from: {allowed}).")
    return target


# ====== Derived fields ======
def derive_period_fields(start_date: date, period_type: str) -> Tuple[int, int, int]:
    """(year, month, period_number) derived from start_date."""
    if period_type == PeriodType.MONTHLY:
        number = start_date.month
    elif period_type == PeriodType.BIWEEKLY:
        number = math.ceil(start_date.timetuple().tm_yday / 14)
    elif period_type == PeriodType.WEEKLY:
        number = start_date.isocalendar()[1]
    else:
        number = 1
    return start_date.year, start_date.month, number


def _validate_dates(start_date: date, end_date: date, pay_date: date, exclude_id: Optional[int] = None) -> None:
    errors: Dict[str, list] = {}
    if end_date <= start_date:
        errors["end_date"] = ["end_date must be after start_date."]
    if pay_date < end_date:
        errors["pay_date"] = ["pay_date must be on or after end_date."]
    if errors:
        raise ValidationError(errors)
    clash = repo.overlapping(start_date, end_date, exclude_id=exclude_id).first()
    if clash:
        raise ValidationError({
            "start_date": [f"Dates overlap with period '{clash.name}' ({clash.start_date} → {clash.end_date})."]
        })


# ====== Business services ======
def create_period(*, name: str, start_date: date, end_date: date, pay_date: date,
                  period_type: str = PeriodType.MONTHLY, notes: str = "",
                  actor_id: Optional[int] = None) -> PayrollPeriod:
    _validate_dates(start_date, end_date, pay_date)
    year, month, number = derive_period_fields(start_date, period_type)
    obj = repo.create({
        "name": name,
        "period_type": period_type,
        "start_date": start_date,
        "end_date": end_date,
        "pay_date": pay_date,
        "notes": notes or "",
        "year": year,
        "month": month,
        "period_number": number,
        "status": S.DRAFT,
    })
    log_action(actor_id=actor_id, action="period.create", object_type="PayrollPeriod", object_id=obj.id,
               after={"name": obj.name, "start_date": str(start_date), "end_date": str(end_date)})
    logger.info("Payroll period %s created (%s → %s)", obj.id, start_date, end_date)
    return obj


@transaction.atomic
def update_period(*, period_id: int, actor_id: Optional[int] = None, **patch) -> PayrollPeriod:
    obj = repo.lock(period_id)
    if obj.status != S.DRAFT:
        raise ValidationError({"status": ["Only draft periods can be edited."]})
    patch = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS}
    start = patch.get("start_date", obj.start_date)
    end = patch.get("end_date", obj.end_date)
    pay = patch.get("pay_date", obj.pay_date)
    if {"start_date", "end_date", "pay_date"} & set(patch):
        _validate_dates(start, end, pay, exclude_id=obj.id)
    year, month, number = derive_period_fields(start, patch.get("period_type", obj.period_type))
    patch.update({"year": year, "month": month, "period_number": number})
    before = {k: str(getattr(obj, k)) for k in patch}
    obj = repo.save_fields(obj, patch)
    log_action(actor_id=actor_id, action="period.update", object_type="PayrollPeriod", object_id=obj.id,
               before=before, after={k: str(getattr(obj, k)) for k in before})
    return obj


@transaction.atomic
def delete_period(*, period_id: int, actor_id: Optional[int] = None) -> None:
    obj = repo.lock(period_id)
    if obj.status != S.DRAFT:
        raise ConflictError("Only draft periods can be deleted.")
    count = repo.payroll_count(obj.id)
    if count:
        raise ConflictError("Period has payrolls and cannot be deleted.", errors={"payrolls": count})
    log_action(actor_id=actor_id, action="period.delete", object_type="PayrollPeriod", object_id=obj.id,
               before={"name": obj.name})
    repo.delete(obj)


def _apply(obj: PayrollPeriod, action: str, actor_id: Optional[int], extra: Optional[Dict[str, Any]] = None) -> PayrollPeriod:
    before = obj.status
    target = next_status(obj.status, action)
    obj = repo.save_fields(obj, {"status": target, **(extra or {})})
    log_action(actor_id=actor_id, action=f"period.{action}", object_type="PayrollPeriod", object_id=obj.id,
               before={"status": before}, after={"status": target})
    logger.info("Payroll period %s: %s → %s", obj.id, before, target)
    return obj


@transaction.atomic
def open_period(*, period_id: int, actor_id: Optional[int] = None) -> PayrollPeriod:
    return _apply(repo.lock(period_id), "open", actor_id, {"opened_at": timezone.now()})


@transaction.atomic
def mark_processing(*, period_id: int, actor_id: Optional[int] = None) -> PayrollPeriod:
    obj = repo.lock(period_id)
    if obj.status == S.PROCESSING:
        return obj
    return _apply(obj, "process", actor_id)


@transaction.atomic
def close_period(*, period_id: int, actor_id: Optional[int] = None) -> PayrollPeriod:
    obj = repo.lock(period_id)
    next_status(obj.status, "close")
    pending = repo.payroll_count(obj.id, PENDING_PAYROLL_STATUSES)
    if pending:
        raise ConflictError(
            f"Cannot close period: {pending} payroll(s) still pending.",
            errors={"pending_payrolls": pending},
        )
    obj = repo.refresh_totals(obj.id)
    return _apply(obj, "close", actor_id, {"closed_at": timezone.now()})


@transaction.atomic
def reopen_period(*, period_id: int, actor_id: Optional[int] = None) -> PayrollPeriod:
    return _apply(repo.lock(period_id), "reopen", actor_id, {"closed_at": None})


def ensure_calculable(period: PayrollPeriod) -> None:
    if period.status not in CALCULABLE_STATUSES:
        raise ConflictError(
            f"Period '{period.name}' is {period.status}; payrolls can only be calculated while it is open."
        )


def refresh_period_totals(*, period_id: int) -> PayrollPeriod:
    return repo.refresh_totals(period_id)
