# -*- coding: utf-8 -*-
"""
Selector for PayrollConcept:
- normalise query params
- delegate to the repository
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
from django.db.models import Count, QuerySet

from payroll.models import PayrollConcept
from payroll.repositories import concept_repository as repo
from payroll.selectors.params import as_bool, as_str_list

TYPES = [c for c, _ in PayrollConcept.Type.choices]


def filter_concepts(filters: Dict[str, Any], order_by: Optional[List[str]] = None) -> QuerySet[PayrollConcept]:
    norm = {
        "type": as_str_list(filters.get("type"), TYPES),
        "status": as_str_list(filters.get("status"), [c for c, _ in PayrollConcept.Status.choices]),
        "calculation_type": as_str_list(filters.get("calculation_type"),
                                        [c for c, _ in PayrollConcept.CalculationType.choices]),
        "is_mandatory": as_bool(filters.get("is_mandatory")),
        "q": (filters.get("q") or filters.get("search") or "").strip(),
    }
    return repo.filter_concepts(norm, order_by=order_by)


def active_by_type(concept_type: str) -> QuerySet[PayrollConcept]:
    return repo.active_qs(concept_type)


def active_grouped() -> Dict[str, List[PayrollConcept]]:
    grouped: Dict[str, List[PayrollConcept]] = {t: [] for t in TYPES}
    for concept in repo.active_qs():
        grouped.setdefault(concept.type, []).append(concept)
    return grouped


def config_summary() -> Dict[str, Any]:
    qs = repo.base_qs()
    by_type = {row["type"]: row["n"] for row in qs.order_by().values("type").annotate(n=Count("id"))}
    by_calc = {row["calculation_type"]: row["n"] for row in qs.order_by().values("calculation_type").annotate(n=Count("id"))}
    by_status = {row["status"]: row["n"] for row in qs.order_by().values("status").annotate(n=Count("id"))}
    return {
        "total": qs.count(),
        "mandatory": qs.filter(is_mandatory=True).count(),
        "by_type": {t: by_type.get(t, 0) for t in TYPES},
        "by_calculation_type": {c: by_calc.get(c, 0) for c, _ in PayrollConcept.CalculationType.choices},
        "by_status": {s: by_status.get(s, 0) for s, _ in PayrollConcept.Status.choices},
    }


get_concept_by_id = repo.get_by_id
get_or_none = repo.get_or_none
