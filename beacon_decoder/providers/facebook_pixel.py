"""Facebook (Meta) Pixel events."""

from __future__ import annotations

import json
import re

from beacon_decoder.data import loader
from beacon_decoder.engine import normalizer, pipeline
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ColumnRoles, ParsedField
from beacon_decoder.utils.url import RequestUrl

PROVIDER_ID = "FACEBOOKPIXEL"

PATTERN = re.compile(r"facebook\.com/tr/?(?!.*&ev=microdata)\?", re.I)

CONTENTS_PARAM = "cd[contents]"

_CONTENT_KEY_LABELS = {
    "id": "ID",
    "item_price": "Price",
    "quantity": "Quantity",
}

_CAMEL_BOUNDARY_RE = re.compile(r"(?=[A-Z])")


def classify(capability: Capability, name: str, value: str) -> ParsedField | None:
    if name == CONTENTS_PARAM:
        # Expanded per product by derive().
        return None
    if name not in capability.params and name.startswith("cd["):
        return pipeline.make_field(
            capability, name, value, label=re.sub(r"^cd\[|\]$", "", name), group="custom"
        )
    return pipeline.default_classify(capability, name, value)


def expand_contents(capability: Capability, raw: str) -> list[ParsedField]:
    """One field per product attribute in the ``cd[contents]`` JSON array.

    Text that is not JSON is kept as a single raw field.
    """
    try:
        products = json.loads(raw)
    except ValueError:
        return [pipeline.make_field(capability, CONTENTS_PARAM, raw, label="Content", group="products")]

    if not isinstance(products, list):
        return []

    fields: list[ParsedField] = []
    for index, product in enumerate(products):
        if not isinstance(product, dict):
            continue
        for key, value in product.items():
            fields.append(
                pipeline.make_field(
                    capability,
                    f"{CONTENTS_PARAM}[{index}][{key}]",
                    normalizer.text_of(value),
                    label=f"Product {index + 1} {_CONTENT_KEY_LABELS.get(key, key)}",
                    group="products",
                )
            )
    return fields


def split_event_name(event: str) -> str:
    """``"AddToCart"`` -> ``"Add To Cart"``."""
    return " ".join(part for part in _CAMEL_BOUNDARY_RE.split(event) if part)


def derive(capability: Capability, url: RequestUrl, params: pipeline.ParamCollection) -> list[ParsedField]:
    results: list[ParsedField] = []
    contents = params.get(CONTENTS_PARAM)
    if contents:
        results.extend(expand_contents(capability, contents))

    results.append(
        pipeline.make_field(capability, "requestType", split_event_name(params.get("ev") or ""), hidden=True)
    )
    return results


def build() -> Capability:
    """Build the Facebook Pixel capability."""
    return Capability.from_tables(
        loader.get_provider_tables("facebook_pixel.json"),
        id=PROVIDER_ID,
        name="Facebook Pixel",
        category="marketing",
        pattern=PATTERN,
        keywords=("fb", "meta", "facebook pixel"),
        column_roles=ColumnRoles(account="id", request_type="requestType"),
        classify=classify,
        derive=derive,
    )
