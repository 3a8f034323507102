# -*- coding: utf-8 -*-
"""
Domain errors raised by the payroll services.

Services also raise django.core.exceptions.ValidationError for field-level
problems and ObjectDoesNotExist for missing rows; the API exception handler
maps all of them onto HTTP status codes.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class PayrollError(Exception):
    status_code = 400
    default_message = "Payroll error"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ConflictError(PayrollError):
    """State conflict: duplicate payroll, wrong-status transition, pending dependents."""
    status_code = 409
    default_message = "Conflict"


class CalculationError(PayrollError):
    status_code = 422
    default_message = "Payroll could not be calculated"


class FormulaError(PayrollError):
    status_code = 422
    default_message = "Invalid formula"
