"""Scalar coercion for raw sheet cells.

Every cell in a sheet arrives as a string.  ``coerce_value`` turns it into
the nearest typed scalar; ``format_value`` renders a scalar back into the
cell form that coerces to the same value.
"""

from __future__ import annotations

import math
import re
from functools import lru_cache
from typing import Any

# Leading float literal, same leniency as a JavaScript-style parseFloat:
# leading whitespace, optional sign, digits with optional fraction and
# exponent, or Infinity.  Anything after the match is ignored.
_LEADING_FLOAT_RE = re.compile(
    r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)

_ARRAY_FIELD_RE = re.compile(r"^([^\[]*)\[(\d+)\]")

_CACHE_SIZE = 65536


def parse_leading_float(text: str) -> float | None:
    """Return the float at the start of *text*, or ``None`` if there is none."""
    m = _LEADING_FLOAT_RE.match(text)
    if m is None:
        return None
    literal = m.group(1)
    if literal.lstrip("+-") == "Infinity":
        return -math.inf if literal.startswith("-") else math.inf
    return float(literal)


@lru_cache(maxsize=_CACHE_SIZE)
def coerce_value(raw: str) -> Any:
    """Coerce a raw cell string into a float, bool, ``None`` or string.

    Rules, in order:
    - a leading float literal -> ``float`` (``"12abc"`` -> ``12.0``)
    - ``"True"`` / ``"False"`` -> ``bool``
    - ``""`` -> ``None``
    - anything else is returned unchanged

    Never raises.
    """
    number = parse_leading_float(raw)
    if number is not None:
        return number
    if raw == "True":
        return True
    if raw == "False":
        return False
    if raw == "":
        return None
    return raw


def format_value(value: Any) -> str:
    """Render a coerced scalar back into its cell text."""
    if value is None:
        return ""
    if value is True:
        return "True"
    if value is False:
        return "False"
    if isinstance(value, float):
        if math.isinf(value):
            return "-Infinity" if value < 0 else "Infinity"
        return repr(value)
    return str(value)


@lru_cache(maxsize=_CACHE_SIZE)
def parse_array_field(name: str) -> tuple[str | None, int | None]:
    """Split an indexed field name such as ``"Materia[1]"``.

    Returns:
        ``(base_name, index)``, or ``(None, None)`` for a plain field name.
    """
    m = _ARRAY_FIELD_RE.match(name)
    if m is None:
        return None, None
    return m.group(1), int(m.group(2))
