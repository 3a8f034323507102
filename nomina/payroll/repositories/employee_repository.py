# -*- coding: utf-8 -*-
"""Read-only access to the HR collaborators (Employee, Position history)."""
from __future__ import annotations
from datetime import date
from typing import Optional
from django.db.models import Q, QuerySet

from payroll.models import Employee, EmployeePosition, Position


def get_by_id(employee_id: int) -> Employee:
    return Employee.objects.select_related("department").get(id=employee_id)

def get_or_none(employee_id: int) -> Optional[Employee]:
    return Employee.objects.select_related("department").filter(id=employee_id).first()

def payable_for_period(start_date: date, end_date: date) -> QuerySet[Employee]:
    """Active employees hired by the end of the period and not terminated before it starts."""
    return (
        Employee.objects.select_related("department")
        .filter(employment_status=Employee.EmploymentStatus.ACTIVE, hire_date__lte=end_date)
        .filter(Q(termination_date__isnull=True) | Q(termination_date__gte=start_date))
        .order_by("id")
    )

def current_position(employee_id: int) -> Optional[Position]:
    row = (
        EmployeePosition.objects.select_related("position", "position__department")
        .filter(employee_id=employee_id, end_date__isnull=True, status=EmployeePosition.Status.ACTIVE)
        .order_by("-start_date", "-id")
        .first()
    )
    return row.position if row else None
