"""Compile raw tier permission edits into a canonical PermissionSpec.

Edits arrive from forms or JSON documents with loosely typed values. The
compiler coerces instead of rejecting: hour/day limits become integers
(missing or non-numeric values become 0) and flags become booleans (missing
flags become False). Range checks belong to the configuration boundary, see
``find_negative_limits``.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Iterable, List, Mapping, Optional

from keybridge.models import EndpointLimit, PermissionSpec

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {'1', 'true', 'yes', 'on'}


def coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                return int(float(text))
            except (ValueError, OverflowError):
                return 0
    return 0


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def _as_mapping(value: Any, section: str) -> Mapping:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        logger.warning(f"Ignoring non-object permission section '{section}': {value!r}")
        return {}
    return value


def compile_permissions(
    raw: Any,
    endpoints: Optional[Iterable[str]] = None,
    flag_names: Optional[Iterable[str]] = None,
) -> PermissionSpec:
    """Build a PermissionSpec from ``raw`` (a mapping or its JSON text).

    ``endpoints`` and ``flag_names`` list the fields an edit form exposes;
    each one appears in the result even when ``raw`` omits it.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw) if raw else {}
        except ValueError as e:
            logger.warning(f"Invalid permissions JSON, compiling empty spec: {e}")
            raw = {}
    raw = _as_mapping(raw, 'permissions')
    raw_limits = _as_mapping(raw.get('limits'), 'limits')
    raw_flags = _as_mapping(raw.get('flags'), 'flags')

    limits = {}
    for endpoint in list(raw_limits) + [e for e in (endpoints or []) if e not in raw_limits]:
        values = raw_limits.get(endpoint)
        values = values if isinstance(values, Mapping) else {}
        limits[str(endpoint)] = EndpointLimit(
            hour=coerce_int(values.get('hour')),
            day=coerce_int(values.get('day')),
        )

    flags = {}
    for name in list(raw_flags) + [f for f in (flag_names or []) if f not in raw_flags]:
        flags[str(name)] = coerce_bool(raw_flags.get(name))

    return PermissionSpec(limits=limits, flags=flags)


def find_negative_limits(spec: PermissionSpec) -> List[str]:
    """Return ``endpoint.hour``/``endpoint.day`` names holding negative values."""
    problems = []
    for endpoint, limit in spec.limits.items():
        if limit.hour < 0:
            problems.append(f'{endpoint}.hour')
        if limit.day < 0:
            problems.append(f'{endpoint}.day')
    return problems
