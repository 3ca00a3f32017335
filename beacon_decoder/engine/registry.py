"""
Provider registry that resolves a request URL to the capability owning it.

Matching is two-tier.  A single composite alternation of every
registered pattern answers "is this a tracking request at all?" in one
regex pass; only when it hits are the per-vendor patterns tried, in
registration order, with the first match winning.

Registration happens once at startup.  After that the registry is only
read, so concurrent ``resolve``/``parse`` calls need no locking.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping

from beacon_decoder.engine import pipeline
from beacon_decoder.engine.normalizer import BodyInput
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ParseResult
from beacon_decoder.utils import logger
from beacon_decoder.utils.errors import DuplicateProviderError
from beacon_decoder.utils.url import extract_domain

log = logger.create_logger("Registry")

# Compiles to a pattern that can never match.
_NEVER = re.compile(r"(?!)")

ProviderState = bool | Mapping[str, object]


def _never_classify(capability: Capability, name: str, value: str) -> None:
    return None


FALLBACK_CAPABILITY = Capability(
    id="",
    name="",
    category="unknown",
    pattern=re.compile(r".*"),
    classify=_never_classify,
    decode_body=pipeline.ignore_body,
)
"""Returned by ``resolve`` when no vendor owns a URL; decodes to no fields."""


# Global inline flags at the head of a source; ``Pattern.flags`` already has them.
_LEADING_FLAGS_RE = re.compile(r"^(?:\(\?[aiLmsux]+\))+")
# Numbered backreferences and conditionals depend on group numbering.
_GROUP_NUMBER_REF_RE = re.compile(r"\\[1-9]|\(\?\(")
_NAMED_GROUP_RE = re.compile(r"(?<!\\)\(\?P([<=])([A-Za-z_]\w*)")

_SCOPED_FLAGS = (
    (re.ASCII, "a"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


def _branch(index: int, pattern: re.Pattern[str]) -> str:
    """Rewrite *pattern* as one self-contained branch of the composite.

    Flags become a scoped group, named groups get a per-branch prefix
    so names cannot clash, and a source that refers to groups by
    number is widened to match everything.
    """
    source = _LEADING_FLAGS_RE.sub("", pattern.pattern)
    if _GROUP_NUMBER_REF_RE.search(source):
        return "(?:)"
    source = _NAMED_GROUP_RE.sub(lambda m: f"(?P{m.group(1)}_p{index}_{m.group(2)}", source)

    flags = "".join(letter for flag, letter in _SCOPED_FLAGS if pattern.flags & flag)
    if not flags:
        return f"(?:{source})"
    # A verbose source may end in a comment, so close on a fresh line.
    tail = "\n" if pattern.flags & re.VERBOSE else ""
    return f"(?{flags}:{source}{tail})"


def _combine(patterns: Iterable[re.Pattern[str]]) -> re.Pattern[str]:
    """Merge compiled patterns into one case-insensitive alternation.

    Each branch keeps its own compile flags.  Case-insensitivity and
    the widened branches only add matches, so the result never
    misses a URL any single pattern accepts.

    Raises:
        re.error: If the merged source does not compile.
    """
    sources = [_branch(index, p) for index, p in enumerate(patterns)]
    if not sources:
        return _NEVER
    return re.compile("|".join(sources), re.IGNORECASE)


def _is_enabled(state: ProviderState | None) -> bool:
    """Interpret one entry of a host-supplied enabled map."""
    if state is None:
        return True
    if isinstance(state, Mapping):
        return bool(state.get("enabled"))
    return bool(state)


class ProviderRegistry:
    """Ordered, id-keyed collection of vendor capabilities."""

    def __init__(self, capabilities: Iterable[Capability] = ()) -> None:
        self._providers: dict[str, Capability] = {}
        self._composite: re.Pattern[str] = _NEVER
        for capability in capabilities:
            self.register(capability)

    # ── Registration ────────────────────────────────────────

    def register(self, capability: Capability) -> None:
        """Add *capability* and rebuild the composite pattern.

        The registry is left untouched when either check fails.

        Raises:
            DuplicateProviderError: If the id is already registered.
            re.error: If the pattern cannot join the composite.
        """
        if capability.id in self._providers:
            log.warn("Duplicate provider id rejected", {"id": capability.id})
            raise DuplicateProviderError(capability.id)

        composite = _combine([*(c.pattern for c in self._providers.values()), capability.pattern])
        self._providers[capability.id] = capability
        self._composite = composite
        log.debug("Registered provider", {"id": capability.id, "name": capability.name})

    # ── Query surface ───────────────────────────────────────

    @property
    def composite_pattern(self) -> re.Pattern[str]:
        """Alternation of every registered pattern."""
        return self._composite

    def providers(self) -> tuple[Capability, ...]:
        """Registered capabilities in registration order."""
        return tuple(self._providers.values())

    def get(self, provider_id: str) -> Capability | None:
        """Look a capability up by id."""
        return self._providers.get(provider_id)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[Capability]:
        return iter(self.providers())

    # ── Matching ────────────────────────────────────────────

    def matches_any(self, url: str) -> bool:
        """Cheap pre-filter: ``True`` if *url* may belong to some vendor.

        ``False`` guarantees no registered vendor matches.  ``True``
        does not pick a vendor; use ``resolve`` for that.
        """
        return self._composite.search(url) is not None

    # Pre-filter alias: ``True`` means *not* rejected.
    fast_reject = matches_any

    def resolve(self, url: str) -> Capability:
        """Return the first registered capability whose pattern matches *url*.

        Falls back to ``FALLBACK_CAPABILITY`` when none does.
        """
        for capability in self._providers.values():
            if capability.matches(url):
                return capability
        log.debug("No provider matched", {"domain": extract_domain(url)})
        return FALLBACK_CAPABILITY

    def parse(self, url: str, body: BodyInput = None) -> ParseResult:
        """Resolve *url* and decode it with the owning capability.

        Raises:
            UrlParseError: If *url* cannot be parsed.
        """
        return pipeline.decode(self.resolve(url), url, body)

    def effective_pattern(self, enabled: Mapping[str, ProviderState] | None = None) -> re.Pattern[str]:
        """Alternation over enabled providers only.

        Args:
            enabled: Provider id to state.  A state is a bool or a
                mapping with an ``enabled`` key.  Missing ids are
                enabled.

        Returns:
            A case-insensitive pattern; it matches nothing when every
            provider is disabled.
        """
        enabled = enabled or {}
        return _combine(
            c.pattern for c in self._providers.values() if _is_enabled(enabled.get(c.id))
        )
