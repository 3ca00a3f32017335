"""
Decode pipeline: the generic behaviour every vendor capability runs.

Steps, in order:

1. Parse the raw URL (fatal on failure).
2. Decode the POST body into pairs and build the ordered parameter
   list (query pairs first, then body pairs).
3. Let the capability rewrite the list (e.g. namespace stacking).
4. Classify each pair; ``None`` drops it.
5. Run the derived-fields hook over the untouched parameter list.
6. Assemble the ``ParseResult``.

The functions prefixed ``default_`` are the hooks a capability gets
when it does not supply its own.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

from beacon_decoder.engine import normalizer
from beacon_decoder.models.results import ParsedField, ParseResult, VendorInfo
from beacon_decoder.utils import logger
from beacon_decoder.utils.errors import get_error_message
from beacon_decoder.utils.url import RequestUrl, parse_request_url

if TYPE_CHECKING:
    from beacon_decoder.models.capability import Capability

log = logger.create_logger("Decode")

Pair = tuple[str, str]
DerivedResult = ParsedField | Iterable[ParsedField] | None
RuleHandler = Callable[["Capability", re.Match[str], str, str], ParsedField | None]
Rule = tuple[re.Pattern[str], RuleHandler]


# ============================================================================
# Parameter collection
# ============================================================================


class ParamCollection:
    """Read-only, ordered view of a request's parameters.

    Behaves like ``URLSearchParams``: names may repeat and
    ``get`` returns the first value.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Iterable[Pair]) -> None:
        self._pairs: tuple[Pair, ...] = tuple(pairs)

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value for *name*, or *default*."""
        for key, value in self._pairs:
            if key == name:
                return value
        return default

    def get_all(self, name: str) -> list[str]:
        """Return every value for *name* in order."""
        return [value for key, value in self._pairs if key == name]

    def names(self) -> list[str]:
        """Distinct parameter names in first-seen order."""
        return list(dict.fromkeys(key for key, _ in self._pairs))

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._pairs)

    def __iter__(self) -> Iterator[Pair]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"ParamCollection({list(self._pairs)!r})"


# ============================================================================
# Field construction
# ============================================================================


def make_field(
    capability: Capability,
    key: str,
    value: str,
    *,
    label: str | None = None,
    group: str | None = None,
    hidden: bool = False,
) -> ParsedField:
    """Build a ``ParsedField``, filling label and group from the dictionary.

    Visible fields fall back to the raw key and the ``"other"``
    group.  Hidden fields only carry what was given explicitly.
    """
    if hidden:
        return ParsedField(key=key, value=value, display_label=label, group_key=group, hidden=True)

    spec = capability.params.get(key)
    if label is None:
        label = spec.label if spec is not None and spec.label else key
    if group is None:
        group = spec.group if spec is not None and spec.group else "other"
    return ParsedField(key=key, value=value, display_label=label, group_key=group)


def as_field_list(result: DerivedResult) -> list[ParsedField]:
    """Normalise a derived-fields hook result to a list."""
    if result is None:
        return []
    if isinstance(result, ParsedField):
        return [result]
    return [f for f in result if f is not None]


# ============================================================================
# Default hooks
# ============================================================================


def default_classify(capability: Capability, name: str, value: str) -> ParsedField | None:
    """Look *name* up in the dictionary; hidden entries produce nothing."""
    spec = capability.params.get(name)
    if spec is not None and spec.hidden:
        return None
    return make_field(capability, name, value)


def default_collect(url: RequestUrl, query_pairs: Sequence[Pair], body_pairs: Sequence[Pair]) -> list[Pair]:
    """Query pairs in literal order, then body pairs."""
    return [*query_pairs, *body_pairs]


def default_prepare(pairs: Sequence[Pair]) -> list[Pair]:
    """Leave the parameter list untouched."""
    return list(pairs)


def default_derive(capability: Capability, url: RequestUrl, params: ParamCollection) -> DerivedResult:
    """No derived fields."""
    return None


def ignore_body(raw: normalizer.BodyInput) -> list[Pair]:
    """Body decoder for vendors that never read the POST body."""
    return []


def classify_with_rules(
    rules: Sequence[Rule],
    capability: Capability,
    name: str,
    value: str,
) -> ParsedField | None:
    """Try each ``(pattern, handler)`` rule top-to-bottom.

    The first pattern that matches *name* decides; its handler may
    return ``None`` to drop the parameter.  Unmatched names go to
    ``default_classify``.
    """
    for pattern, handler in rules:
        match = pattern.search(name)
        if match is not None:
            return handler(capability, match, name, value)
    return default_classify(capability, name, value)


# ============================================================================
# Pipeline
# ============================================================================


def _decode_body_safely(capability: Capability, body: normalizer.BodyInput) -> list[Pair]:
    try:
        return list(capability.decode_body(body))
    except (ValueError, TypeError, UnicodeError, RecursionError) as exc:
        log.warn(
            "Body decode failed; continuing without body parameters",
            {"provider": capability.id, "error": get_error_message(exc)},
        )
        return []


def vendor_info(capability: Capability) -> VendorInfo:
    """Static vendor block for a ``ParseResult``."""
    return VendorInfo(
        id=capability.id,
        name=capability.name,
        category=capability.category,
        category_label=capability.category_label,
        column_roles=capability.column_roles,
        groups=list(capability.groups),
    )


def decode(capability: Capability, raw_url: str, body: normalizer.BodyInput = None) -> ParseResult:
    """Decode a single request with *capability*.

    Args:
        capability: The vendor capability owning the request.
        raw_url: The full request URL.
        body: POST body as text, bytes or a flat form mapping.

    Returns:
        The vendor block plus classified fields, then derived fields.

    Raises:
        UrlParseError: If *raw_url* cannot be parsed.
    """
    url = parse_request_url(raw_url)
    log.start_timer(raw_url)
    try:
        body_pairs = _decode_body_safely(capability, body)
        pairs = list(capability.collect_params(url, url.query_pairs(), body_pairs))

        fields: list[ParsedField] = []
        for name, value in capability.prepare_params(pairs):
            field = capability.classify(capability, name, value)
            if field is not None:
                fields.append(field)

        derived = as_field_list(capability.derive(capability, url, ParamCollection(pairs)))
    finally:
        log.end_timer(raw_url, f"Decoded {capability.name or 'unknown'} request")

    log.debug(
        "Decode summary",
        {"provider": capability.id, "params": len(pairs), "fields": len(fields), "derived": len(derived)},
    )
    return ParseResult(vendor=vendor_info(capability), fields=[*fields, *derived])
