"""
Deep string coercion for inbound JSON payloads.

Downstream handlers treat every leaf as text (they call string methods on
whatever they find), so the gateway rewrites the parsed body before handing it
over: containers keep their exact shape, leaves become strings.

The walk uses an explicit stack, so nesting depth is bounded by memory rather
than the interpreter's recursion limit.
"""

from __future__ import annotations

from typing import Any

# Above this magnitude JSON number formatting switches to exponent notation.
_EXPONENT_THRESHOLD = 1e21


def _scalar_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    # bool is an int subclass, so it has to be checked first.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer() and abs(value) < _EXPONENT_THRESHOLD:
            return str(int(value))
        return repr(value)
    return str(value)


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple))


def _empty_like(value: Any) -> Any:
    return {} if isinstance(value, dict) else []


def coerce(value: Any) -> Any:
    """
    Return a copy of ``value`` where every leaf is a string.

    - None -> ""
    - str -> unchanged
    - list/tuple -> list, elements coerced in order
    - dict -> dict, same keys in the same order, values coerced
    - bool/int/float -> JSON spelling ("true", "1", "1.5")

    Total and idempotent: coerce(coerce(x)) == coerce(x).
    """
    if not _is_container(value):
        return _scalar_to_str(value)

    root = _empty_like(value)
    stack: list[tuple[Any, Any]] = [(value, root)]
    while stack:
        source, target = stack.pop()
        items = source.items() if isinstance(source, dict) else enumerate(source)
        for key, item in items:
            if _is_container(item):
                # Attach the empty child now so the parent keeps its order.
                child = _empty_like(item)
                stack.append((item, child))
            else:
                child = _scalar_to_str(item)
            if isinstance(target, dict):
                target[key] = child
            else:
                target.append(child)
    return root
