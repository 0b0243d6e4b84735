"""
Small shared helpers.

    - generate_timestamp: processing timestamp stored in invoice metadata
    - elapsed_ms: stage timings
    - merge_dicts: layering configuration overrides over file values
    - text_sample: text previews in debug metadata
"""

import time
from datetime import datetime
from typing import Any, Dict, Mapping, Optional


def generate_timestamp() -> str:
    """Current local time in ISO 8601, e.g. "2026-01-21T14:30:22.120431"."""
    return datetime.now().isoformat()


def elapsed_ms(start: float) -> float:
    """
    Milliseconds elapsed since a time.perf_counter() reading.

    Args:
        start: Value previously returned by time.perf_counter().

    Returns:
        Elapsed time in milliseconds, rounded to 3 decimals.
    """
    return round((time.perf_counter() - start) * 1000, 3)


def text_sample(text: Optional[str], length: int = 200) -> str:
    """Return the first `length` characters of text, with an ellipsis if cut."""
    if text is None or len(text) <= length:
        return text or ""
    return f"{text[:length]}..."


def merge_dicts(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Layer one nested mapping over another.

    Nested mappings present on both sides are merged key by key; any
    other overlay value replaces the base value. Neither input is
    modified.

    Args:
        base: Lower layer, e.g. values read from settings.yaml.
        overlay: Upper layer, e.g. runtime overrides.

    Returns:
        New merged dictionary.

    Example:
        >>> merge_dicts({"validation": {"tolerance": 0.01, "strict": False}},
        ...             {"validation": {"strict": True}})
        {'validation': {'tolerance': 0.01, 'strict': True}}
    """
    merged = dict(base)
    for key, value in overlay.items():
        below = merged.get(key)
        if isinstance(below, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_dicts(below, value)
        else:
            merged[key] = value
    return merged
