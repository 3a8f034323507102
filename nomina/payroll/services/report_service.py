# -*- coding: utf-8 -*-
"""
Read-side aggregation over calculated payrolls (no side effects).

Every report tolerates empty result sets and returns zeros. Money values are
rendered as strings with two decimals, the same way the serializers do.
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from django.db.models import Avg, Count, Max, Min, QuerySet, Sum
from django.utils import timezone

from payroll.models import Payroll
from payroll.repositories import payroll_repository as repo
from payroll.repositories import employee_repository as employee_repo
from payroll.selectors.payroll_selector import normalize_filters

ZERO = Decimal("0")
CENT = Decimal("0.01")

# payroll statuses that count as "calculated" for reporting purposes
REPORTABLE_STATUSES = [Payroll.Status.CALCULATED, Payroll.Status.APPROVED, Payroll.Status.PAID]
REPORT_TYPES = ("summary", "detailed", "comparative")


def _money(v: Optional[Decimal]) -> str:
    return str(Decimal(v or ZERO).quantize(CENT, rounding=ROUND_HALF_UP))


def _pct(part: Decimal, whole: Decimal) -> str:
    if not whole:
        return "0.00"
    return _money(Decimal(part or ZERO) * 100 / Decimal(whole))


def base_queryset(filters: Dict[str, Any]) -> QuerySet[Payroll]:
    norm = normalize_filters(filters)
    if not norm["status"]:
        norm["status"] = REPORTABLE_STATUSES
    return repo.filter_payrolls(norm).order_by()


def _aggregate(qs: QuerySet[Payroll]) -> Dict[str, Any]:
    agg = qs.aggregate(
        n=Count("id"),
        employees=Count("employee_id", distinct=True),
        gross=Sum("gross_salary"),
        earnings=Sum("total_earnings"),
        deductions=Sum("total_deductions"),
        taxes=Sum("total_taxes"),
        net=Sum("net_salary"),
        employer=Sum("employer_contributions"),
        avg_gross=Avg("gross_salary"),
        avg_net=Avg("net_salary"),
    )
    return {
        "payroll_count": agg["n"] or 0,
        "employee_count": agg["employees"] or 0,
        "total_gross": _money(agg["gross"]),
        "total_earnings": _money(agg["earnings"]),
        "total_deductions": _money(agg["deductions"]),
        "total_taxes": _money(agg["taxes"]),
        "total_net": _money(agg["net"]),
        "total_employer_contributions": _money(agg["employer"]),
        "average_gross": _money(agg["avg_gross"]),
        "average_net": _money(agg["avg_net"]),
    }


def _grouped(qs: QuerySet[Payroll], *keys: str, with_range: bool = False) -> List[Dict[str, Any]]:
    extra = {"min_net": Min("net_salary"), "max_net": Max("net_salary")} if with_range else {}
    rows = (
        qs.values(*keys)
        .annotate(
            n=Count("id"),
            employees=Count("employee_id", distinct=True),
            gross=Sum("gross_salary"),
            deductions=Sum("total_deductions"),
            taxes=Sum("total_taxes"),
            net=Sum("net_salary"),
            employer=Sum("employer_contributions"),
            avg_net=Avg("net_salary"),
            **extra,
        )
        .order_by(*keys)
    )
    out = []
    for row in rows:
        item = {k: row[k] for k in keys}
        item.update({
            "payroll_count": row["n"],
            "employee_count": row["employees"],
            "total_gross": _money(row["gross"]),
            "total_deductions": _money(row["deductions"]),
            "total_taxes": _money(row["taxes"]),
            "total_net": _money(row["net"]),
            "total_employer_contributions": _money(row["employer"]),
            "average_net": _money(row["avg_net"]),
        })
        if with_range:
            item["min_net"] = _money(row["min_net"])
            item["max_net"] = _money(row["max_net"])
        out.append(item)
    return out


def _empty_group(**keys: Any) -> Dict[str, Any]:
    item = dict(keys)
    item.update({"payroll_count": 0, "employee_count": 0})
    for name in ("total_gross", "total_deductions", "total_taxes", "total_net",
                 "total_employer_contributions", "average_net"):
        item[name] = "0.00"
    return item


# ====== Reports ======
def summary_report(filters: Dict[str, Any]) -> Dict[str, Any]:
    qs = base_queryset(filters)
    by_status = {row["status"]: row for row in _grouped(qs, "status")}
    return {"report_type": "summary", "totals": _aggregate(qs), "by_status": by_status}


def detailed_report(filters: Dict[str, Any], limit: Optional[int] = None) -> Dict[str, Any]:
    qs = base_queryset(filters).prefetch_related("details__concept").order_by("period__start_date", "employee_id")
    if limit:
        qs = qs[:limit]
    rows = []
    for p in qs:
        rows.append({
            "payroll_id": p.id,
            "payroll_number": p.payroll_number,
            "employee_id": p.employee_id,
            "employee_number": p.employee.employee_number,
            "employee_name": p.employee.full_name,
            "department": p.department.name if p.department else None,
            "position": p.position.title if p.position else None,
            "period": p.period.name,
            "status": p.status,
            "base_salary": _money(p.base_salary),
            "worked_days": str(p.worked_days),
            "worked_hours": str(p.worked_hours),
            "overtime_hours": str(p.overtime_hours),
            "gross_salary": _money(p.gross_salary),
            "total_deductions": _money(p.total_deductions),
            "total_taxes": _money(p.total_taxes),
            "net_salary": _money(p.net_salary),
            "details": [
                {"code": d.concept.code, "name": d.concept.name, "type": d.concept_type, "amount": _money(d.amount)}
                for d in p.details.all()
            ],
        })
    return {"report_type": "detailed", "count": len(rows), "rows": rows}


def comparative_report(filters: Dict[str, Any]) -> Dict[str, Any]:
    rows = _grouped(base_queryset(filters), "period_id", "period__name", "period__start_date")
    rows.sort(key=lambda r: r["period__start_date"])
    prev = None
    for row in rows:
        if prev is None:
            row["net_change"] = None
            row["net_change_pct"] = None
        else:
            change = Decimal(row["total_net"]) - Decimal(prev["total_net"])
            row["net_change"] = _money(change)
            row["net_change_pct"] = _pct(change, Decimal(prev["total_net"]))
        prev = row
    return {"report_type": "comparative", "periods": rows}


def payroll_report(filters: Dict[str, Any], report_type: str = "summary") -> Dict[str, Any]:
    if report_type == "detailed":
        return detailed_report(filters)
    if report_type == "comparative":
        return comparative_report(filters)
    return summary_report(filters)


def department_report(filters: Dict[str, Any]) -> Dict[str, Any]:
    qs = base_queryset(filters)
    totals = _aggregate(qs)
    rows = _grouped(qs, "department_id", "department__name")
    grand = Decimal(totals["total_net"])
    for row in rows:
        row["percentage_of_total"] = _pct(Decimal(row["total_net"]), grand)
    return {"totals": totals, "departments": rows}


def position_report(filters: Dict[str, Any]) -> Dict[str, Any]:
    qs = base_queryset(filters)
    return {"totals": _aggregate(qs), "positions": _grouped(qs, "position_id", "position__title", with_range=True)}


def employee_history(employee_id: int, limit: int = 12) -> Dict[str, Any]:
    employee = employee_repo.get_by_id(employee_id)
    qs = repo.filter_payrolls({"employee_id": [employee.id]}, order_by=["-period__start_date"])[: max(1, limit)]
    history = [
        {
            "payroll_id": p.id,
            "payroll_number": p.payroll_number,
            "period_id": p.period_id,
            "period": p.period.name,
            "start_date": p.period.start_date,
            "status": p.status,
            "gross_salary": _money(p.gross_salary),
            "total_deductions": _money(p.total_deductions),
            "total_taxes": _money(p.total_taxes),
            "net_salary": _money(p.net_salary),
        }
        for p in qs
    ]
    nets = [Decimal(h["net_salary"]) for h in history]
    return {
        "employee": {"id": employee.id, "employee_number": employee.employee_number, "name": employee.full_name},
        "history": history,
        "statistics": {
            "count": len(history),
            "average_net": _money(sum(nets, ZERO) / len(nets)) if nets else "0.00",
            "max_net": _money(max(nets)) if nets else "0.00",
            "min_net": _money(min(nets)) if nets else "0.00",
        },
    }


def _months_back(today: date, months: int) -> date:
    y, m = today.year, today.month - (months - 1)
    while m <= 0:
        m += 12
        y -= 1
    return date(y, m, 1)


def analytics(months: int = 12, today: Optional[date] = None) -> Dict[str, Any]:
    months = max(1, min(int(months or 12), 120))
    today = today or timezone.localdate()
    since = _months_back(today, months)
    qs = base_queryset({}).filter(period__start_date__gte=since, period__start_date__lte=today)

    trends = []
    for row in _grouped(qs, "period__year", "period__month"):
        row["label"] = f"{row['period__year']:04d}-{row['period__month']:02d}"
        trends.append(row)

    totals = _aggregate(qs)
    grand = Decimal(totals["total_net"])
    departments = _grouped(qs, "department_id", "department__name")
    for row in departments:
        row["percentage_of_total"] = _pct(Decimal(row["total_net"]), grand)

    return {
        "months": months,
        "since": since,
        "totals": totals,
        "monthly_trends": trends,
        "department_distribution": departments,
    }


def period_status_summary(period_id: int) -> Dict[str, Any]:
    qs = Payroll.objects.filter(period_id=period_id).order_by()
    by_status = {s: _empty_group(status=s) for s, _ in Payroll.Status.choices}
    for row in _grouped(qs, "status"):
        by_status[row["status"]] = row
    return {"period_id": period_id, "by_status": by_status, "overall": _aggregate(qs)}
