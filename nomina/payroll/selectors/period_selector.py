# -*- coding: utf-8 -*-
"""
Selector for PayrollPeriod:
- normalise query params
- read-side helpers (current / active period, summary)
"""
from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, List, Optional
from django.db.models import Count, QuerySet, Sum
from django.utils import timezone

from payroll.models import Payroll, PayrollPeriod
from payroll.repositories import period_repository as repo
from payroll.repositories import payroll_repository as payroll_repo
from payroll.selectors.params import as_date, as_int, as_str_list

ZERO = Decimal("0")


def filter_periods(filters: Dict[str, Any], order_by: Optional[List[str]] = None) -> QuerySet[PayrollPeriod]:
    norm = {
        "status": as_str_list(filters.get("status"), [c for c, _ in PayrollPeriod.Status.choices]),
        "period_type": as_str_list(filters.get("period_type") or filters.get("type"),
                                   [c for c, _ in PayrollPeriod.PeriodType.choices]),
        "year": as_int(filters.get("year")),
        "month": as_int(filters.get("month")),
        "date_from": as_date(filters.get("date_from")),
        "date_to": as_date(filters.get("date_to")),
        "q": (filters.get("q") or filters.get("search") or "").strip(),
    }
    return repo.filter_periods(norm, order_by=order_by)


def current_period() -> Optional[PayrollPeriod]:
    """Period containing today, else the most recent open/processing one."""
    today = timezone.localdate()
    return repo.containing(today) or repo.with_statuses(
        [PayrollPeriod.Status.OPEN, PayrollPeriod.Status.PROCESSING]
    ).first()


def active_periods() -> QuerySet[PayrollPeriod]:
    return repo.with_statuses([PayrollPeriod.Status.OPEN, PayrollPeriod.Status.PROCESSING])


def period_payrolls(period_id: int) -> QuerySet[Payroll]:
    repo.get_by_id(period_id)
    return payroll_repo.filter_payrolls({"period_id": [period_id]}, order_by=["employee__last_name", "employee__first_name"])


def period_summary(period_id: int) -> Dict[str, Any]:
    period = repo.get_by_id(period_id)
    qs = Payroll.objects.filter(period_id=period.id)
    totals = qs.aggregate(
        payrolls=Count("id"),
        gross=Sum("gross_salary"),
        earnings=Sum("total_earnings"),
        deductions=Sum("total_deductions"),
        taxes=Sum("total_taxes"),
        net=Sum("net_salary"),
        employer=Sum("employer_contributions"),
    )
    breakdown = {
        s: {"count": 0, "net_salary": "0.00"} for s, _ in Payroll.Status.choices
    }
    for row in qs.order_by().values("status").annotate(n=Count("id"), net=Sum("net_salary")):
        breakdown[row["status"]] = {"count": row["n"], "net_salary": str(row["net"] or ZERO)}
    employer = totals["employer"] or ZERO
    net = totals["net"] or ZERO
    return {
        "period": {"id": period.id, "name": period.name, "status": period.status,
                   "start_date": period.start_date, "end_date": period.end_date, "pay_date": period.pay_date},
        "totals": {
            "payrolls": totals["payrolls"] or 0,
            "gross_salary": str(totals["gross"] or ZERO),
            "total_earnings": str(totals["earnings"] or ZERO),
            "total_deductions": str(totals["deductions"] or ZERO),
            "total_taxes": str(totals["taxes"] or ZERO),
            "net_salary": str(net),
        },
        "employer_contributions": str(employer),
        "total_cost": str(net + (totals["deductions"] or ZERO) + (totals["taxes"] or ZERO) + employer),
        "status_breakdown": breakdown,
    }


get_period_by_id = repo.get_by_id
get_or_none = repo.get_or_none
