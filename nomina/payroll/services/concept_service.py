# -*- coding: utf-8 -*-
"""
Service for the PayrollConcept catalog:
- create / update / delete with definition checks (fixed needs a value, formula needs a formula)
- formulas are parsed on save and stored compiled
- mandatory concepts cannot be deactivated, referenced concepts cannot be deleted
- statutory concepts used by the engine are seeded by ensure_system_concepts()
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from payroll.exceptions import FormulaError
from payroll.models import PayrollConcept
from payroll.repositories import concept_repository as repo
from payroll.services import calculation, formula
from payroll.services.audit_service import log_action

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "code", "name", "description", "type", "calculation_type", "calculation_base",
    "default_value", "formula", "is_taxable", "affects_social_security", "is_mandatory",
    "priority_order", "display_order", "status",
}

T = PayrollConcept.Type
C = PayrollConcept.CalculationType

SYSTEM_CONCEPTS: Dict[str, Dict[str, Any]] = {
    calculation.SALARY: dict(name="Salario básico", type=T.EARNING, calculation_type=C.FIXED, default_value=Decimal("0"),
                             is_taxable=True, affects_social_security=True, priority_order=1),
    calculation.OVERTIME: dict(name="Horas extra", type=T.EARNING, calculation_type=C.FIXED, default_value=Decimal("0"),
                               is_taxable=True, affects_social_security=True, priority_order=2),
    calculation.TRANSPORT: dict(name="Auxilio de transporte", type=T.EARNING, calculation_type=C.FIXED,
                                default_value=Decimal("140606"), is_taxable=False, affects_social_security=False,
                                priority_order=3),
    calculation.HEALTH: dict(name="Aporte salud empleado", type=T.DEDUCTION, calculation_type=C.PERCENTAGE,
                             default_value=Decimal("4"), calculation_base="gross_salary", is_mandatory=True,
                             priority_order=1),
    calculation.PENSION: dict(name="Aporte pensión empleado", type=T.DEDUCTION, calculation_type=C.PERCENTAGE,
                              default_value=Decimal("4"), calculation_base="gross_salary", is_mandatory=True,
                              priority_order=2),
    calculation.SOLIDARITY: dict(name="Fondo de solidaridad pensional", type=T.DEDUCTION, calculation_type=C.PERCENTAGE,
                                 default_value=Decimal("1"), calculation_base="gross_salary", is_mandatory=True,
                                 priority_order=3),
    calculation.UNPAID_LEAVE: dict(name="Licencia no remunerada", type=T.DEDUCTION, calculation_type=C.FIXED,
                                   default_value=Decimal("0"), priority_order=4),
    calculation.WITHHOLDING: dict(name="Retención en la fuente", type=T.TAX, calculation_type=C.FIXED,
                                  default_value=Decimal("0"), is_mandatory=True, priority_order=1),
}


# ====== Helpers ======
def known_variables(extra: Optional[Iterable[str]] = None) -> List[str]:
    names = set(repo.all_codes()) | set(calculation.STATUTORY_CODES) | set(calculation.BUILTIN_VARIABLES)
    if extra:
        names |= set(extra)
    return sorted(names)


def validate_formula(formula_text: str, known_codes: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """
    Check a formula without evaluating it.

    Args:
        formula_text: expression with {CODE} placeholders
        known_codes: codes that may be referenced; defaults to the catalog + built-ins

    Raises:
        ValidationError: syntax problems or unknown variables (listed in the message)

    Returns:
        dict: {"valid": True, "variables": [...], "missing": []}
    """
    try:
        expr = formula.parse(formula_text)
    except FormulaError as e:
        raise ValidationError({"formula": [e.message]})
    known = list(known_codes) if known_codes is not None else known_variables()
    variables = formula.extract_variables(formula_text)
    missing = [v for v in variables if v not in set(known)]
    if missing:
        raise ValidationError({"formula": [f"Unknown variables: {', '.join(missing)}"]})
    return {"valid": True, "variables": variables, "missing": [], "compiled": expr.to_dict()}


def _check_definition(data: Dict[str, Any], *, code: str) -> Dict[str, Any]:
    calc = data.get("calculation_type")
    errors: Dict[str, List[str]] = {}
    if calc == C.FIXED and data.get("default_value") is None:
        errors["default_value"] = ["Required when calculation_type is fixed."]
    if calc == C.PERCENTAGE and data.get("default_value") is None:
        errors["default_value"] = ["Required when calculation_type is percentage."]
    if calc == C.FORMULA and not (data.get("formula") or "").strip():
        errors["formula"] = ["Required when calculation_type is formula."]
    if errors:
        raise ValidationError(errors)

    if calc == C.FORMULA:
        result = validate_formula(data["formula"], known_codes=[c for c in known_variables() if c != code])
        data["compiled_formula"] = result["compiled"]
    else:
        data["compiled_formula"] = None
    return data


# ====== Business services ======
def create_concept(*, actor_id: Optional[int] = None, **data) -> PayrollConcept:
    data = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    code = (data.get("code") or "").strip().upper()
    if not code:
        raise ValidationError({"code": ["This field is required."]})
    if repo.code_exists(code):
        raise ValidationError({"code": ["A concept with this code already exists."]})
    data["code"] = code
    data = _check_definition(data, code=code)
    obj = repo.create(data)
    log_action(actor_id=actor_id, action="concept.create", object_type="PayrollConcept", object_id=obj.id,
               after={"code": obj.code, "type": obj.type})
    logger.info("Concept %s created", obj.code)
    return obj


@transaction.atomic
def update_concept(*, concept_id: int, actor_id: Optional[int] = None, **patch) -> PayrollConcept:
    obj = repo.get_by_id(concept_id)
    patch = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS}
    if "code" in patch:
        patch["code"] = (patch["code"] or "").strip().upper()
        if patch["code"] != obj.code:
            if obj.is_system:
                raise ValidationError({"code": ["System concept codes cannot be changed."]})
            if repo.code_exists(patch["code"], exclude_id=obj.id):
                raise ValidationError({"code": ["A concept with this code already exists."]})
    if patch.get("status") == PayrollConcept.Status.INACTIVE and (obj.is_mandatory or patch.get("is_mandatory")):
        raise ValidationError({"status": ["Mandatory concepts cannot be deactivated."]})

    merged = {f: getattr(obj, f) for f in ("calculation_type", "default_value", "formula")}
    merged.update({k: v for k, v in patch.items() if k in merged})
    merged = _check_definition(merged, code=patch.get("code", obj.code))
    patch["compiled_formula"] = merged["compiled_formula"]

    before = {k: str(getattr(obj, k)) for k in patch if k != "compiled_formula"}
    obj = repo.save_fields(obj, patch)
    log_action(actor_id=actor_id, action="concept.update", object_type="PayrollConcept", object_id=obj.id,
               before=before, after={k: str(getattr(obj, k)) for k in before})
    return obj


@transaction.atomic
def delete_concept(*, concept_id: int, actor_id: Optional[int] = None) -> None:
    obj = repo.get_by_id(concept_id)
    if obj.is_system:
        raise ValidationError({"concept": ["System concepts cannot be deleted."]})
    if repo.is_referenced(obj.id):
        raise ValidationError({"concept": ["Concept is used by existing payroll details and cannot be deleted."]})
    log_action(actor_id=actor_id, action="concept.delete", object_type="PayrollConcept", object_id=obj.id,
               before={"code": obj.code})
    repo.delete(obj)
    logger.info("Concept %s deleted", obj.code)


def activate_concept(*, concept_id: int, actor_id: Optional[int] = None) -> PayrollConcept:
    obj = repo.set_status(concept_id, PayrollConcept.Status.ACTIVE)
    log_action(actor_id=actor_id, action="concept.activate", object_type="PayrollConcept", object_id=obj.id)
    return obj


def deactivate_concept(*, concept_id: int, actor_id: Optional[int] = None) -> PayrollConcept:
    obj = repo.get_by_id(concept_id)
    if obj.is_mandatory:
        raise ValidationError({"status": [f"Concept {obj.code} is mandatory and cannot be deactivated."]})
    obj = repo.set_status(concept_id, PayrollConcept.Status.INACTIVE)
    log_action(actor_id=actor_id, action="concept.deactivate", object_type="PayrollConcept", object_id=obj.id)
    return obj


def ensure_system_concepts() -> List[PayrollConcept]:
    out = []
    for code, defaults in SYSTEM_CONCEPTS.items():
        out.append(repo.get_or_create_system(code, {**defaults, "is_system": True}))
    return out
