# -*- coding: utf-8 -*-
"""
Selector for Payroll:
- normalise query params (comma lists, dates)
- delegate to the repository
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
from django.db.models import QuerySet

from payroll.models import Payroll
from payroll.repositories import payroll_repository as repo
from payroll.selectors.params import as_date, as_int_list, as_str_list


def normalize_filters(filters: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "period_id": as_int_list(filters.get("period_id") or filters.get("payroll_period_id")),
        "employee_id": as_int_list(filters.get("employee_id")),
        "department_id": as_int_list(filters.get("department_id")),
        "position_id": as_int_list(filters.get("position_id")),
        "status": as_str_list(filters.get("status"), [c for c, _ in Payroll.Status.choices]),
        "date_from": as_date(filters.get("date_from") or filters.get("start_date")),
        "date_to": as_date(filters.get("date_to") or filters.get("end_date")),
        "q": (filters.get("q") or filters.get("search") or "").strip(),
    }


def filter_payrolls(filters: Dict[str, Any], order_by: Optional[List[str]] = None) -> QuerySet[Payroll]:
    return repo.filter_payrolls(normalize_filters(filters), order_by=order_by)


get_payroll_by_id = repo.get_by_id
get_with_details = repo.with_details
get_or_none = repo.get_or_none
