# -*- coding: utf-8 -*-
"""
Repository layer for PayrollConcept / EmployeeBenefit (pure DB).
Business rules (mandatory guard, formula checks) live in concept_service.
"""
from __future__ import annotations
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from django.db import transaction
from django.db.models import Q, QuerySet

from payroll.models import PayrollConcept, EmployeeBenefit, PayrollDetail


# ============================
# Base queries
# ============================
def base_qs() -> QuerySet[PayrollConcept]:
    return PayrollConcept.objects.all()

def get_by_id(concept_id: int) -> PayrollConcept:
    return base_qs().get(id=concept_id)

def get_or_none(concept_id: int) -> Optional[PayrollConcept]:
    return base_qs().filter(id=concept_id).first()

def get_by_code(code: str) -> Optional[PayrollConcept]:
    return base_qs().filter(code=code).first()

def code_exists(code: str, exclude_id: Optional[int] = None) -> bool:
    qs = base_qs().filter(code=code)
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()

def all_codes() -> List[str]:
    return list(base_qs().values_list("code", flat=True))

def filter_concepts(filters: Dict[str, Any], order_by: Optional[List[str]] = None) -> QuerySet[PayrollConcept]:
    qs = base_qs()
    if (types := filters.get("type")):
        qs = qs.filter(type__in=types)
    if (statuses := filters.get("status")):
        qs = qs.filter(status__in=statuses)
    if (calc := filters.get("calculation_type")):
        qs = qs.filter(calculation_type__in=calc)
    if filters.get("is_mandatory") is not None:
        qs = qs.filter(is_mandatory=filters["is_mandatory"])
    if (qtext := (filters.get("q") or "").strip()):
        qs = qs.filter(Q(name__icontains=qtext) | Q(code__icontains=qtext) | Q(description__icontains=qtext))
    return qs.order_by(*order_by) if order_by else qs.order_by("type", "name")

def active_qs(concept_type: Optional[str] = None) -> QuerySet[PayrollConcept]:
    qs = base_qs().filter(status=PayrollConcept.Status.ACTIVE)
    if concept_type:
        qs = qs.filter(type=concept_type)
    return qs.order_by("priority_order", "name")

def mandatory_active(exclude_codes: Iterable[str] = ()) -> QuerySet[PayrollConcept]:
    return active_qs().filter(is_mandatory=True).exclude(code__in=list(exclude_codes))

def is_referenced(concept_id: int) -> bool:
    return PayrollDetail.objects.filter(concept_id=concept_id).exists()

def active_benefits_for(employee_id: int, start: date, end: date) -> QuerySet[EmployeeBenefit]:
    """Active assignments overlapping [start, end] whose concept is active."""
    return (
        EmployeeBenefit.objects.select_related("concept")
        .filter(
            employee_id=employee_id,
            status=EmployeeBenefit.Status.ACTIVE,
            concept__status=PayrollConcept.Status.ACTIVE,
            start_date__lte=end,
        )
        .filter(Q(end_date__isnull=True) | Q(end_date__gte=start))
        .order_by("concept__priority_order", "concept__code")
    )


# ============================
# Mutations (pure DB)
# ============================
@transaction.atomic
def create(data: Dict[str, Any]) -> PayrollConcept:
    return PayrollConcept.objects.create(**data)

@transaction.atomic
def save_fields(obj: PayrollConcept, patch: Dict[str, Any], allowed: Optional[Iterable[str]] = None) -> PayrollConcept:
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
def set_status(concept_id: int, status: str) -> PayrollConcept:
    obj = PayrollConcept.objects.select_for_update().get(id=concept_id)
    obj.status = status
    obj.save(update_fields=["status", "updated_at"])
    return obj

@transaction.atomic
def get_or_create_system(code: str, defaults: Dict[str, Any]) -> PayrollConcept:
    obj, _ = PayrollConcept.objects.get_or_create(code=code, defaults=defaults)
    return obj

@transaction.atomic
def delete(obj: PayrollConcept) -> None:
    obj.delete()
