# -*- coding: utf-8 -*-
"""
Repository layer for PayrollPeriod (pure DB).
Transition guards are decided by period_service; this module only executes.
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from django.db import transaction
from django.db.models import Count, Q, QuerySet, Sum

from payroll.models import PayrollPeriod, Payroll


# ============================
# Base queries
# ============================
def base_qs() -> QuerySet[PayrollPeriod]:
    return PayrollPeriod.objects.all()

def get_by_id(period_id: int) -> PayrollPeriod:
    return base_qs().get(id=period_id)

def get_or_none(period_id: int) -> Optional[PayrollPeriod]:
    return base_qs().filter(id=period_id).first()

def lock(period_id: int) -> PayrollPeriod:
    return PayrollPeriod.objects.select_for_update().get(id=period_id)

def filter_periods(filters: Dict[str, Any], order_by: Optional[List[str]] = None) -> QuerySet[PayrollPeriod]:
    qs = base_qs()
    if (statuses := filters.get("status")):
        qs = qs.filter(status__in=statuses)
    if (types := filters.get("period_type")):
        qs = qs.filter(period_type__in=types)
    if (year := filters.get("year")):
        qs = qs.filter(year=year)
    if (month := filters.get("month")):
        qs = qs.filter(month=month)
    if (d_from := filters.get("date_from")):
        qs = qs.filter(end_date__gte=d_from)
    if (d_to := filters.get("date_to")):
        qs = qs.filter(start_date__lte=d_to)
    if (qtext := (filters.get("q") or "").strip()):
        qs = qs.filter(Q(name__icontains=qtext) | Q(notes__icontains=qtext))
    return qs.order_by(*order_by) if order_by else qs.order_by("-start_date")

def overlapping(start_date: date, end_date: date, exclude_id: Optional[int] = None) -> QuerySet[PayrollPeriod]:
    """Periods sharing at least one day with [start_date, end_date] (boundaries inclusive)."""
    qs = base_qs().filter(
        Q(start_date__range=(start_date, end_date))
        | Q(end_date__range=(start_date, end_date))
        | Q(start_date__lte=start_date, end_date__gte=end_date)
    )
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    return qs

def containing(day: date) -> Optional[PayrollPeriod]:
    return base_qs().filter(start_date__lte=day, end_date__gte=day).order_by("-start_date").first()

def with_statuses(statuses: Iterable[str]) -> QuerySet[PayrollPeriod]:
    return base_qs().filter(status__in=list(statuses)).order_by("-start_date")

def payroll_count(period_id: int, statuses: Optional[Iterable[str]] = None) -> int:
    qs = Payroll.objects.filter(period_id=period_id)
    if statuses:
        qs = qs.filter(status__in=list(statuses))
    return qs.count()

def previous_of(period: PayrollPeriod) -> Optional[PayrollPeriod]:
    return base_qs().filter(start_date__lt=period.start_date).order_by("-start_date").first()


# ============================
# Mutations (pure DB)
# ============================
@transaction.atomic
def create(data: Dict[str, Any]) -> PayrollPeriod:
    return PayrollPeriod.objects.create(**data)

@transaction.atomic
def save_fields(obj: PayrollPeriod, patch: Dict[str, Any], allowed: Optional[Iterable[str]] = None) -> PayrollPeriod:
    fields: List[str] = []
    for k, v in patch.items():
        if (allowed is None) or (k in allowed):
            setattr(obj, k, v)
            fields.append(k)
    if fields:
        fields.append("updated_at")
        obj.save(update_fields=fields)
    return obj

@transaction.atomic
def refresh_totals(period_id: int) -> PayrollPeriod:
    obj = lock(period_id)
    agg = Payroll.objects.filter(period_id=period_id).exclude(
        status__in=[Payroll.Status.CANCELLED, Payroll.Status.REJECTED]
    ).aggregate(
        n=Count("id"),
        gross=Sum("gross_salary"),
        deductions=Sum("total_deductions"),
        taxes=Sum("total_taxes"),
        net=Sum("net_salary"),
    )
    obj.total_employees = agg["n"] or 0
    obj.total_gross = agg["gross"] or Decimal("0")
    obj.total_deductions = agg["deductions"] or Decimal("0")
    obj.total_taxes = agg["taxes"] or Decimal("0")
    obj.total_net = agg["net"] or Decimal("0")
    obj.save(update_fields=["total_employees", "total_gross", "total_deductions", "total_taxes", "total_net", "updated_at"])
    return obj

@transaction.atomic
def delete(obj: PayrollPeriod) -> None:
    obj.delete()
