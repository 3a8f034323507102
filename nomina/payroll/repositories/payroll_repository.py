# -*- coding: utf-8 -*-
"""
Repository layer for Payroll / PayrollDetail (pure DB):
- CRUD, filter, select_for_update, transaction
- detail rows are only ever replaced as a whole, together with the parent
- NO business rules (status checks, who may approve...); payroll_service decides.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from payroll.models import Payroll, PayrollDetail


# ============================
# Base queries
# ============================
def base_qs() -> QuerySet[Payroll]:
    return Payroll.objects.select_related("employee", "period", "department", "position")

def get_by_id(payroll_id: int) -> Payroll:
    return base_qs().get(id=payroll_id)

def get_or_none(payroll_id: int) -> Optional[Payroll]:
    return base_qs().filter(id=payroll_id).first()

def with_details(payroll_id: int) -> Payroll:
    return base_qs().prefetch_related("details__concept").get(id=payroll_id)

def find_for(employee_id: int, period_id: int, for_update: bool = False) -> Optional[Payroll]:
    qs = Payroll.objects.select_for_update() if for_update else Payroll.objects.all()
    return qs.filter(employee_id=employee_id, period_id=period_id).first()

def lock(payroll_id: int) -> Payroll:
    return Payroll.objects.select_for_update().get(id=payroll_id)

def filter_payrolls(filters: Dict[str, Any], order_by: Optional[List[str]] = None) -> QuerySet[Payroll]:
    qs = base_qs()
    if (period_ids := filters.get("period_id")):
        qs = qs.filter(period_id__in=period_ids)
    if (emp_ids := filters.get("employee_id")):
        qs = qs.filter(employee_id__in=emp_ids)
    if (dept_ids := filters.get("department_id")):
        qs = qs.filter(department_id__in=dept_ids)
    if (pos_ids := filters.get("position_id")):
        qs = qs.filter(position_id__in=pos_ids)
    if (statuses := filters.get("status")):
        qs = qs.filter(status__in=statuses)
    if (d_from := filters.get("date_from")):
        qs = qs.filter(period__start_date__gte=d_from)
    if (d_to := filters.get("date_to")):
        qs = qs.filter(period__end_date__lte=d_to)
    if (qtext := (filters.get("q") or "").strip()):
        qs = qs.filter(
            Q(payroll_number__icontains=qtext)
            | Q(employee__first_name__icontains=qtext)
            | Q(employee__last_name__icontains=qtext)
            | Q(employee__employee_number__icontains=qtext)
        )
    return qs.order_by(*order_by) if order_by else qs.order_by("-period__start_date", "employee_id")


# ============================
# Mutations (pure DB)
# ============================
@transaction.atomic
def create(data: Dict[str, Any]) -> Payroll:
    return Payroll.objects.create(**data)

@transaction.atomic
def save_fields(obj: Payroll, patch: Dict[str, Any], allowed: Optional[Iterable[str]] = None) -> Payroll:
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
def replace_details(payroll: Payroll, rows: List[Dict[str, Any]]) -> List[PayrollDetail]:
    PayrollDetail.objects.filter(payroll=payroll).delete()
    return PayrollDetail.objects.bulk_create([PayrollDetail(payroll=payroll, **row) for row in rows])

@transaction.atomic
def bulk_approve(period_id: int, approver_id: Optional[int]) -> int:
    now = timezone.now()
    return Payroll.objects.filter(period_id=period_id, status=Payroll.Status.CALCULATED).update(
        status=Payroll.Status.APPROVED, approved_by=approver_id, approved_at=now, updated_at=now,
    )

@transaction.atomic
def delete(obj: Payroll) -> None:
    obj.delete()
