"""Google Universal Analytics (analytics.js / Measurement Protocol) hits.

Besides the fixed dictionary, UA encodes several indexed families
in parameter names: custom dimensions and metrics, content groups,
enhanced-ecommerce products, promotions and impression lists.
"""

from __future__ import annotations

import re

from beacon_decoder.data import loader
from beacon_decoder.engine import normalizer, pipeline
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ColumnRoles, ParsedField
from beacon_decoder.utils.url import RequestUrl

PROVIDER_ID = "UNIVERSALANALYTICS"

PATTERN = re.compile(r"\.google-analytics\.com/([rg]/)?collect(?:[/?]+|$)")

_PRODUCT_ATTRS = {
    "id": "ID",
    "nm": "Name",
    "br": "Brand",
    "ca": "Category",
    "va": "Variant",
    "pr": "Price",
    "qt": "Quantity",
    "cc": "Coupon Code",
    "ps": "Position",
}

_PROMO_ATTRS = {
    "id": "ID",
    "nm": "Name",
    "cr": "Creative",
    "ps": "Position",
}

_IMPRESSION_ATTRS = {k: v for k, v in _PRODUCT_ATTRS.items() if k not in ("qt", "cc")}

_CUSTOM_KINDS = {
    "cd": "Dimension",
    "cm": "Metric",
}

_PAGE_VIEW_HITS = frozenset({"pageview", "screenview", "page_view", "page view"})
_ECOMMERCE_HITS = frozenset({"transaction", "item"})


# ── Classification rules ────────────────────────────────────────


def _field(label: str, group: str, capability: Capability, name: str, value: str) -> ParsedField:
    return pipeline.make_field(capability, name, value, label=label, group=group)


def _custom_dimension(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    return _field(f"Custom Dimension {m.group(1)}", "dimension", capability, name, value)


def _custom_metric(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    return _field(f"Custom Metric {m.group(1)}", "metric", capability, name, value)


def _content_group(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    return _field(f"Content Group {m.group(1)}", "contentgroup", capability, name, value)


def _promotion(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    attr = _PROMO_ATTRS.get(m.group(2).lower(), "")
    return _field(f"Promotion {m.group(1)} {attr}", "promo", capability, name, value)


def _product(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    attr = _PRODUCT_ATTRS.get(m.group(2).lower(), "")
    return _field(f"Product {m.group(1)} {attr}", "ecommerce", capability, name, value)


def _product_custom(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    kind = _CUSTOM_KINDS.get(m.group(2).lower(), "")
    return _field(f"Product {m.group(1)} {kind} {m.group(3)}", "ecommerce", capability, name, value)


def _impression_list(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    return _field(f"Impression List {m.group(1)}", "ecommerce", capability, name, value)


def _impression_custom(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    kind = _CUSTOM_KINDS.get(m.group(3).lower(), "")
    label = f"Impression List {m.group(1)} Product {m.group(2)} {kind} {m.group(4)}"
    return _field(label, "ecommerce", capability, name, value)


def _impression_product(capability: Capability, m: re.Match[str], name: str, value: str) -> ParsedField:
    attr = _IMPRESSION_ATTRS.get(m.group(3).lower(), "")
    return _field(f"Impression List {m.group(1)} Product {m.group(2)} {attr}", "ecommerce", capability, name, value)


RULES: list[pipeline.Rule] = [
    (re.compile(r"^cd(\d+)$", re.I), _custom_dimension),
    (re.compile(r"^cm(\d+)$", re.I), _custom_metric),
    (re.compile(r"^cg(\d+)$", re.I), _content_group),
    (re.compile(r"^promo(\d+)([a-z]{2})$", re.I), _promotion),
    (re.compile(r"^pr(\d+)([a-z]{2})$", re.I), _product),
    (re.compile(r"^pr(\d+)(cd|cm)(\d+)$", re.I), _product_custom),
    (re.compile(r"^il(\d+)nm$", re.I), _impression_list),
    (re.compile(r"^il(\d+)pi(\d+)(cd|cm)(\d+)$", re.I), _impression_custom),
    (re.compile(r"^il(\d+)pi(\d+)([a-z]{2})$", re.I), _impression_product),
]


def classify(capability: Capability, name: str, value: str) -> ParsedField | None:
    return pipeline.classify_with_rules(RULES, capability, name, value)


# ── Derived fields ──────────────────────────────────────────────


def request_type(hit_type: str) -> str:
    """Turn a ``t``/``en`` hit type into a display label."""
    hit_type = hit_type.lower()
    if hit_type in _PAGE_VIEW_HITS:
        return "Page View"
    if hit_type in _ECOMMERCE_HITS:
        return f"Ecommerce {hit_type.capitalize()}"
    if "_" in hit_type:
        return hit_type.replace("_", " ")
    return hit_type.capitalize()


def derive(capability: Capability, url: RequestUrl, params: pipeline.ParamCollection) -> ParsedField:
    hit_type = params.get("t") or params.get("en") or "page view"
    return pipeline.make_field(capability, "requestType", request_type(hit_type), hidden=True)


def build() -> Capability:
    """Build the Universal Analytics capability."""
    return Capability.from_tables(
        loader.get_provider_tables("universal_analytics.json"),
        id=PROVIDER_ID,
        name="Universal Analytics",
        category="analytics",
        pattern=PATTERN,
        keywords=("google", "google analytics", "ua", "ga"),
        column_roles=ColumnRoles(account="tid", request_type="requestType"),
        classify=classify,
        decode_body=normalizer.decode_query_body,
        derive=derive,
    )
