# -*- coding: utf-8 -*-
"""
Payroll rates / regulatory constants.

Defaults live on the dataclass, ``settings.PAYROLL_RATES`` may override them
per deployment, and runtime overrides written through the configuration API
are kept in the Django cache (30 days by default, last writer wins).
Callers build one ``PayrollRates`` per request or batch with ``load_rates()``
and pass it explicitly to the calculation engine.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

CACHE_KEY = "payroll:rates:overrides"
DEFAULT_TTL = 60 * 60 * 24 * 30


@dataclass(frozen=True)
class WithholdingBracket:
    min_uvt: Decimal
    max_uvt: Optional[Decimal]
    rate: Decimal
    fixed_uvt: Decimal

    def contains(self, uvt: Decimal) -> bool:
        return uvt > self.min_uvt and (self.max_uvt is None or uvt <= self.max_uvt)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "min_uvt": str(self.min_uvt),
            "max_uvt": None if self.max_uvt is None else str(self.max_uvt),
            "rate": str(self.rate),
            "fixed_uvt": str(self.fixed_uvt),
        }


def _bracket(lo, hi, rate, fixed) -> WithholdingBracket:
    return WithholdingBracket(
        Decimal(lo), None if hi is None else Decimal(hi), Decimal(rate), Decimal(fixed)
    )


DEFAULT_BRACKETS: Tuple[WithholdingBracket, ...] = (
    _bracket("0", "95", "0", "0"),
    _bracket("95", "150", "0.19", "0"),
    _bracket("150", "360", "0.28", "10.45"),
    _bracket("360", "640", "0.33", "69.25"),
    _bracket("640", "945", "0.35", "161.65"),
    _bracket("945", "2300", "0.37", "268.40"),
    _bracket("2300", None, "0.39", "769.75"),
)


@dataclass(frozen=True)
class PayrollRates:
    # employee side
    health_employee: Decimal = Decimal("0.04")
    pension_employee: Decimal = Decimal("0.04")
    solidarity_fund: Decimal = Decimal("0.01")
    solidarity_threshold_wages: Decimal = Decimal("4")
    # employer side
    health_employer: Decimal = Decimal("0.085")
    pension_employer: Decimal = Decimal("0.12")
    arl: Decimal = Decimal("0.00522")
    compensation_fund: Decimal = Decimal("0.04")
    icbf: Decimal = Decimal("0.03")
    sena: Decimal = Decimal("0.02")
    # provisions (reported, not deducted)
    severance: Decimal = Decimal("0.0833")
    severance_interest: Decimal = Decimal("0.12")
    service_bonus: Decimal = Decimal("0.0833")
    vacation: Decimal = Decimal("0.0417")
    # wages & time
    minimum_wage: Decimal = Decimal("1160000")
    transport_allowance: Decimal = Decimal("140606")
    transport_allowance_cap_wages: Decimal = Decimal("2")
    overtime_multiplier: Decimal = Decimal("1.25")
    overtime_hour_divisor: Decimal = Decimal("240")
    hourly_divisor: Decimal = Decimal("160")
    standard_period_days: Decimal = Decimal("30")
    # withholding
    uvt_value: Decimal = Decimal("42412")
    withholding_brackets: Tuple[WithholdingBracket, ...] = field(default=DEFAULT_BRACKETS)

    @property
    def employer_rates(self) -> Dict[str, Decimal]:
        return {
            "health": self.health_employer,
            "pension": self.pension_employer,
            "arl": self.arl,
            "compensation_fund": self.compensation_fund,
            "icbf": self.icbf,
            "sena": self.sena,
        }


SCALAR_KEYS = tuple(f.name for f in fields(PayrollRates) if f.name != "withholding_brackets")


# ============================
# Coercion
# ============================
def _to_decimal(key: str, value: Any) -> Decimal:
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError({key: f"'{value}' is not a number."})
    if not dec.is_finite() or dec < 0:
        raise ValidationError({key: "Must be a non-negative number."})
    return dec


def _to_brackets(raw: Any) -> Tuple[WithholdingBracket, ...]:
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValidationError({"withholding_brackets": "Must be a non-empty list of brackets."})
    out = []
    for i, row in enumerate(raw):
        if isinstance(row, WithholdingBracket):
            out.append(row)
            continue
        try:
            max_uvt = row.get("max_uvt")
            out.append(WithholdingBracket(
                _to_decimal("min_uvt", row["min_uvt"]),
                None if max_uvt in (None, "") else _to_decimal("max_uvt", max_uvt),
                _to_decimal("rate", row["rate"]),
                _to_decimal("fixed_uvt", row.get("fixed_uvt", 0)),
            ))
        except (KeyError, AttributeError):
            raise ValidationError({"withholding_brackets": f"Bracket #{i} needs min_uvt, max_uvt, rate, fixed_uvt."})
    out.sort(key=lambda b: b.min_uvt)
    for prev, nxt in zip(out, out[1:]):
        if prev.max_uvt is None or prev.max_uvt != nxt.min_uvt:
            raise ValidationError({"withholding_brackets": "Brackets must be contiguous and only the last may be open-ended."})
    return tuple(out)


def build_rates(overrides: Optional[Dict[str, Any]] = None, base: Optional[PayrollRates] = None) -> PayrollRates:
    base = base or PayrollRates()
    overrides = overrides or {}
    unknown = set(overrides) - set(SCALAR_KEYS) - {"withholding_brackets"}
    if unknown:
        raise ValidationError({k: "Unknown rate." for k in sorted(unknown)})
    patch: Dict[str, Any] = {k: _to_decimal(k, v) for k, v in overrides.items() if k in SCALAR_KEYS}
    if "withholding_brackets" in overrides:
        patch["withholding_brackets"] = _to_brackets(overrides["withholding_brackets"])
    if patch.get("standard_period_days") == 0 or patch.get("uvt_value") == 0:
        raise ValidationError({"rates": "standard_period_days and uvt_value must be greater than zero."})
    return replace(base, **patch)


def rates_as_dict(rates: PayrollRates) -> Dict[str, Any]:
    data: Dict[str, Any] = {k: str(getattr(rates, k)) for k in SCALAR_KEYS}
    data["withholding_brackets"] = [b.as_dict() for b in rates.withholding_brackets]
    return data


# ============================
# Load / store
# ============================
def _cache_ttl() -> int:
    return int(getattr(settings, "PAYROLL_CONFIG_CACHE_TTL", DEFAULT_TTL))


def settings_rates() -> PayrollRates:
    return build_rates(getattr(settings, "PAYROLL_RATES", None) or {})


def load_rates() -> PayrollRates:
    overrides = cache.get(CACHE_KEY) or {}
    return build_rates(overrides, base=settings_rates())


def update_rates(patch: Dict[str, Any]) -> PayrollRates:
    current = cache.get(CACHE_KEY) or {}
    merged = {**current, **patch}
    rates = build_rates(merged, base=settings_rates())
    # store the normalised form so the cache never holds unparsable values
    stored = {k: v for k, v in rates_as_dict(rates).items() if k in merged}
    cache.set(CACHE_KEY, stored, _cache_ttl())
    logger.info("Payroll rates updated: %s", sorted(patch))
    return rates


def reset_rates() -> PayrollRates:
    cache.delete(CACHE_KEY)
    logger.info("Payroll rates reset to defaults")
    return settings_rates()
