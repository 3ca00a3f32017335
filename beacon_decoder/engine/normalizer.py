"""
Parameter normaliser that turns POST bodies into ordered (name, value) pairs.

Bodies arrive either as raw text (query-encoded or JSON) or as an
already-decoded flat mapping supplied by the host.  JSON payloads are
flattened recursively into path-addressable leaves:

    {"a": {"b": [1, 2]}}  ->  [("a.b[0]", "1"), ("a.b[1]", "2")]

Empty objects and arrays below the root keep their presence as a
single ``(path, "")`` pair.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from typing import Any
from urllib import parse

from beacon_decoder.utils import logger
from beacon_decoder.utils.errors import get_error_message

log = logger.create_logger("Normalizer")

Pair = tuple[str, str]
BodyInput = str | bytes | Mapping[str, Any] | None


# ============================================================================
# Scalars
# ============================================================================


def text_of(value: Any) -> str:
    """Render a scalar the way a JSON-speaking client would print it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _form_text(value: Any) -> str:
    """Coerce a form-mapping value to text."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(_form_text(v) for v in value)
    return text_of(value)


# ============================================================================
# Flatten
# ============================================================================


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _walk(value: Any, path: str) -> Iterator[Pair]:
    if isinstance(value, Mapping):
        if not value:
            yield (path, "")
            return
        for key, child in value.items():
            yield from _walk(child, _join(path, str(key)))
    elif isinstance(value, (list, tuple)):
        if not value:
            yield (path, "")
            return
        for index, child in enumerate(value):
            yield from _walk(child, f"{path}[{index}]")
    else:
        yield (path, text_of(value))


def flatten(value: Any, prefix: str = "") -> list[Pair]:
    """Flatten a decoded JSON value into ordered leaf pairs.

    Args:
        value: Any JSON-compatible value.
        prefix: Path of *value* itself; ``""`` for the document root.

    Returns:
        One ``(path, text)`` pair per scalar leaf, plus one
        ``(path, "")`` pair per empty object or array.
    """
    return list(_walk(value, prefix))


# ============================================================================
# Body decoders
# ============================================================================


def _as_text(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def decode_form_mapping(raw: Mapping[str, Any]) -> list[Pair]:
    """One pair per mapping entry, in iteration order."""
    return [(str(name), _form_text(value)) for name, value in raw.items()]


def parse_query_text(text: str) -> list[Pair]:
    """Split a query-encoded body on ``&`` and the first ``=`` of each field.

    Only the value is percent-decoded; a field without ``=`` gets
    an empty value and blank fields are skipped.
    """
    pairs: list[Pair] = []
    for field in text.split("&"):
        if not field:
            continue
        name, _, value = field.partition("=")
        pairs.append((name, parse.unquote(value)))
    return pairs


def decode_json_text(text: str) -> list[Pair]:
    """Parse *text* as JSON and flatten it.

    Invalid JSON, and JSON nested too deeply to parse or flatten,
    is logged and yields no pairs.  An empty root object or array
    also yields no pairs.
    """
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        log.warn("POST body is not JSON", {"error": get_error_message(exc), "length": len(text)})
        return []
    except RecursionError:
        log.warn("POST body is nested too deeply", {"length": len(text)})
        return []

    if isinstance(parsed, (Mapping, list)) and not parsed:
        return []
    try:
        return flatten(parsed)
    except RecursionError:
        log.warn("POST body is nested too deeply", {"length": len(text)})
        return []


def decode_query_body(raw: BodyInput) -> list[Pair]:
    """Body decoder for vendors that only ever POST query-encoded text."""
    if not raw:
        return []
    if isinstance(raw, Mapping):
        return decode_form_mapping(raw)
    return parse_query_text(_as_text(raw))


def decode_json_body(raw: BodyInput) -> list[Pair]:
    """Body decoder for vendors that only ever POST JSON."""
    if not raw:
        return []
    if isinstance(raw, Mapping):
        return decode_form_mapping(raw)
    return decode_json_text(_as_text(raw))


def decode_body(raw: BodyInput) -> list[Pair]:
    """Generic body decoder.

    Mappings are taken as already-decoded form data.  Text whose
    first non-blank character opens a JSON object or array is
    flattened as JSON; other text containing ``=`` is treated as
    query-encoded; anything else is attempted as JSON.
    """
    if not raw:
        return []
    if isinstance(raw, Mapping):
        return decode_form_mapping(raw)

    text = _as_text(raw)
    stripped = text.lstrip()
    if not stripped:
        return []
    if stripped[0] in "{[":
        return decode_json_text(stripped)
    if "=" in stripped:
        return parse_query_text(text)
    return decode_json_text(stripped)
