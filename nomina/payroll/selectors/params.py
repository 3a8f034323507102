# -*- coding: utf-8 -*-
"""Query-param normalisation shared by the selectors (string → list/date/int)."""
from __future__ import annotations
from typing import Any, List, Optional
from datetime import date
from django.utils.dateparse import parse_date


def _split(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, (list, tuple, set)):
        raw: List[str] = []
        for x in v:
            if x is None:
                continue
            raw.extend(str(x).split(","))
    else:
        raw = str(v).split(",")
    return [s.strip() for s in raw if s.strip()]


def as_int_list(v: Any) -> List[int]:
    return [int(s) for s in _split(v) if s.isdigit()]


def as_str_list(v: Any, allowed: Optional[List[str]] = None) -> List[str]:
    out = [s.lower() for s in _split(v)]
    if allowed is not None:
        out = [s for s in out if s in allowed]
    return out


def as_int(v: Any, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def as_date(v: Any) -> Optional[date]:
    if not v:
        return None
    if isinstance(v, date):
        return v
    try:
        return parse_date(str(v))
    except ValueError:
        return None


def as_bool(v: Any) -> Optional[bool]:
    if v is None or v == "":
        return None
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "yes", "on")
