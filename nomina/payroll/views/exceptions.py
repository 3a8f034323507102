# -*- coding: utf-8 -*-
"""
DRF exception handler: every error leaves the API as
{"success": false, "data": null, "message": ..., "errors": ...}.

    django ValidationError / DRF ValidationError   → 422
    PayrollError subclasses                        → their status_code
    ObjectDoesNotExist / Http404 / NotFound        → 404
    other APIException (auth, method, throttling)  → DRF's status
    anything else                                  → 500, logged
"""
from __future__ import annotations
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

from payroll.exceptions import PayrollError
from payroll.views.utils import fail

logger = logging.getLogger(__name__)


def _django_errors(exc: DjangoValidationError):
    if hasattr(exc, "error_dict"):
        return exc.message_dict
    return {"non_field_errors": exc.messages}


def _first_message(errors, default: str) -> str:
    if isinstance(errors, dict):
        for value in errors.values():
            return _first_message(value, default)
    if isinstance(errors, (list, tuple)) and errors:
        return _first_message(errors[0], default)
    if isinstance(errors, str) and errors:
        return errors
    return default


def envelope_exception_handler(exc, context):
    if not isinstance(exc, drf_exceptions.APIException):
        set_rollback()
    if isinstance(exc, DjangoValidationError):
        errors = _django_errors(exc)
        return fail(_first_message(errors, "Validation failed."), errors, status=422)

    if isinstance(exc, PayrollError):
        return fail(exc.message, exc.errors, status=exc.status_code)

    if isinstance(exc, drf_exceptions.ValidationError):
        return fail(_first_message(exc.detail, "Validation failed."), exc.detail, status=422)

    if isinstance(exc, (ObjectDoesNotExist, Http404, drf_exceptions.NotFound)):
        return fail(str(exc) or "Not found.", None, status=404)

    response = drf_exception_handler(exc, context)
    if response is not None:
        detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
        response.data = {"success": False, "data": None, "message": str(detail), "errors": None}
        return response

    view = context.get("view")
    logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "view")
    return fail("Internal server error.", None, status=500)
