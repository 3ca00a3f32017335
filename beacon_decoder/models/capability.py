"""Pydantic models for vendor capabilities.

A capability is a vendor's self-contained decoding ruleset: a URL
pattern, a parameter dictionary, presentation groups and a set of
function-valued hooks.  Every hook defaults to the generic
implementation in ``beacon_decoder.engine.pipeline``; a vendor
supplies only the hooks it customises.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Literal

import pydantic

from beacon_decoder.engine import normalizer, pipeline
from beacon_decoder.models.results import ColumnRoles, GroupSpec, ParsedField, ParseResult
from beacon_decoder.utils.url import RequestUrl

Category = Literal["analytics", "ux-testing", "tag-manager", "visitor-id", "marketing", "unknown"]

CATEGORY_LABELS: dict[str, str] = {
    "analytics": "Analytics",
    "ux-testing": "UX Testing",
    "tag-manager": "Tag Manager",
    "visitor-id": "Visitor Identification",
    "marketing": "Marketing",
    "unknown": "Unknown",
}

# Spellings used by older provider definitions.
_CATEGORY_ALIASES: dict[str, str] = {
    "testing": "ux-testing",
    "tagmanager": "tag-manager",
    "visitorid": "visitor-id",
}

Pair = tuple[str, str]
Classifier = Callable[["Capability", str, str], ParsedField | None]
BodyDecoder = Callable[[normalizer.BodyInput], Sequence[Pair]]
ParamCollector = Callable[[RequestUrl, Sequence[Pair], Sequence[Pair]], Sequence[Pair]]
ParamPreparer = Callable[[Sequence[Pair]], Sequence[Pair]]
DerivedHook = Callable[["Capability", RequestUrl, pipeline.ParamCollection], pipeline.DerivedResult]


class ParamSpec(pydantic.BaseModel):
    """Dictionary entry for one parameter name."""

    model_config = pydantic.ConfigDict(frozen=True)

    label: str | None = None
    group: str | None = None
    hidden: bool = False


class ProviderTables(pydantic.BaseModel):
    """Static tables for a vendor, as stored in JSON."""

    model_config = pydantic.ConfigDict(frozen=True)

    groups: tuple[GroupSpec, ...] = ()
    params: dict[str, ParamSpec] = pydantic.Field(default_factory=dict)


class Capability(pydantic.BaseModel):
    """One vendor's decoding ruleset (immutable once built)."""

    model_config = pydantic.ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    name: str
    category: Category = "unknown"
    pattern: re.Pattern[str]
    keywords: tuple[str, ...] = ()
    params: dict[str, ParamSpec] = pydantic.Field(default_factory=dict)
    groups: tuple[GroupSpec, ...] = ()
    column_roles: ColumnRoles = pydantic.Field(default_factory=ColumnRoles)

    classify: Classifier = pipeline.default_classify
    decode_body: BodyDecoder = normalizer.decode_body
    collect_params: ParamCollector = pipeline.default_collect
    prepare_params: ParamPreparer = pipeline.default_prepare
    derive: DerivedHook = pipeline.default_derive

    @pydantic.field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: object) -> object:
        """Map legacy spellings and collapse anything unrecognised to ``unknown``."""
        if not isinstance(value, str):
            return "unknown"
        value = _CATEGORY_ALIASES.get(value, value)
        return value if value in CATEGORY_LABELS else "unknown"

    @pydantic.field_validator("pattern", mode="before")
    @classmethod
    def _compile_pattern(cls, value: object) -> object:
        """Accept pattern source text as well as a compiled regex."""
        if isinstance(value, str):
            return re.compile(value)
        return value

    @property
    def category_label(self) -> str:
        """Human-readable category."""
        return CATEGORY_LABELS[self.category]

    def matches(self, url: str) -> bool:
        """Check whether this capability owns *url*."""
        return self.pattern.search(url) is not None

    def decode(self, raw_url: str, body: normalizer.BodyInput = None) -> ParseResult:
        """Run the decode pipeline for *raw_url* with this capability's hooks."""
        return pipeline.decode(self, raw_url, body)

    @classmethod
    def from_tables(cls, tables: ProviderTables, **kwargs: object) -> Capability:
        """Build a capability whose dictionary and groups come from *tables*."""
        return cls(params=tables.params, groups=tables.groups, **kwargs)


Capability.model_rebuild()
