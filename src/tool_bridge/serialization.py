"""
Serialization of tool result bodies.

Two encodings are offered: JSON, in the compact form JavaScript's
``JSON.stringify`` produces, and TOON, a whitespace-minimizing notation that
costs fewer tokens for tabular data.
"""

from __future__ import annotations

import json
import logging
from typing import Any, NamedTuple, Optional

from toon import encode as toon_encode

__all__ = ["SerializedValue", "safe_json_stringify", "safe_json_length", "to_toon"]

_logger = logging.getLogger(__name__)

_COMPACT_SEPARATORS = (",", ":")


class SerializedValue(NamedTuple):
    value: str
    ok: bool


def safe_json_stringify(value: Any, *, indent: Optional[int] = None) -> SerializedValue:
    """
    Serialize ``value`` to JSON without ever raising.

    Args:
        value: Any value; normally JSON-compatible.
        indent: Pretty-print indentation. None gives the compact form.

    Returns:
        ``SerializedValue(json_text, True)`` on success. When ``json`` rejects
        the value (cyclic reference, unsupported type) the result is
        ``SerializedValue(str(value), False)``.
    """
    try:
        text = json.dumps(
            value,
            ensure_ascii=False,
            indent=indent,
            separators=None if indent is not None else _COMPACT_SEPARATORS,
        )
    except (TypeError, ValueError, RecursionError) as exc:
        _logger.debug("Value is not JSON serializable, using str(): %s", exc)
        return SerializedValue(str(value), False)
    return SerializedValue(text, True)


def safe_json_length(value: Any) -> tuple[int, bool]:
    result = safe_json_stringify(value)
    return len(result.value), result.ok


def to_toon(value: Any) -> str:
    """Encode ``value`` as TOON. Errors from the encoder propagate."""
    return toon_encode(value)
