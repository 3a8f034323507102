# -*- coding: utf-8 -*-
"""
Service for the payroll configuration (rates, minimum wage, UVT, withholding table).
Thin layer over services.rates that records who changed what.
"""
from __future__ import annotations
from typing import Any, Dict, Optional

from django.core.cache import cache

from payroll.services import rates as rates_mod
from payroll.services.audit_service import log_action


def get_configuration() -> Dict[str, Any]:
    rates = rates_mod.load_rates()
    overrides = cache.get(rates_mod.CACHE_KEY) or {}
    return {
        "rates": rates_mod.rates_as_dict(rates),
        "overridden": sorted(overrides),
    }


def update_configuration(*, patch: Dict[str, Any], actor_id: Optional[int] = None) -> Dict[str, Any]:
    before = rates_mod.rates_as_dict(rates_mod.load_rates())
    rates = rates_mod.update_rates(patch)
    after = rates_mod.rates_as_dict(rates)
    log_action(actor_id=actor_id, action="config.update", object_type="PayrollRates", object_id="rates",
               before={k: before[k] for k in patch}, after={k: after[k] for k in patch})
    return get_configuration()


def reset_configuration(*, actor_id: Optional[int] = None) -> Dict[str, Any]:
    rates_mod.reset_rates()
    log_action(actor_id=actor_id, action="config.reset", object_type="PayrollRates", object_id="rates")
    return get_configuration()


def withholding_table() -> Dict[str, Any]:
    rates = rates_mod.load_rates()
    return {
        "uvt_value": str(rates.uvt_value),
        "brackets": [b.as_dict() for b in rates.withholding_brackets],
    }
