# Load all models into the payroll.models namespace
from .mixins import TimeStampedModel

from .core import Department, Position, Employee, EmployeePosition
from .concept import PayrollConcept, EmployeeBenefit
from .period import PayrollPeriod
from .payroll import Payroll, PayrollDetail
from .audit import AuditLog

__all__ = [
    "TimeStampedModel",
    "Department", "Position", "Employee", "EmployeePosition",
    "PayrollConcept", "EmployeeBenefit",
    "PayrollPeriod",
    "Payroll", "PayrollDetail",
    "AuditLog",
]
