"""
Namespace stacking for dotted hierarchical parameter keys.

Some vendors send nested context data as a flat, ordered query
string.  A key ending in ``.`` opens a namespace and a key starting
with ``.`` closes the innermost one:

    c.=  a.=  x=1  .a=  y=2  .c=

decodes to ``c.a.x=1`` and ``c.y=2``.
"""

from __future__ import annotations

from collections.abc import Iterable

OPEN_SUFFIX = "."
CLOSE_PREFIX = "."


def is_close(key: str) -> bool:
    return key.startswith(CLOSE_PREFIX)


def is_open(key: str) -> bool:
    return key.endswith(OPEN_SUFFIX)


def stack_namespaces(pairs: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Replace each key with its fully-qualified key.

    Sentinel pairs are consumed and never emitted.  Close is tested
    before open, so a bare ``"."`` closes.  Closing with nothing
    open is ignored.

    Args:
        pairs: Parameters in the order they were sent.

    Returns:
        ``(effective_key, value)`` pairs in the same order.
    """
    stack: list[str] = []
    stacked: list[tuple[str, str]] = []
    for key, value in pairs:
        if is_close(key):
            if stack:
                stack.pop()
            continue
        if is_open(key):
            stack.append(key)
            continue
        stacked.append(("".join(stack) + key, value))
    return stacked
