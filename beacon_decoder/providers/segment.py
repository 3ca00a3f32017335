"""Segment tracking API calls.

Segment POSTs JSON, which the generic body decoder flattens
(``properties.revenue``, ``context.page.url`` ...).  The call type
comes from the endpoint path.
"""

from __future__ import annotations

import re

from beacon_decoder.engine import pipeline
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ColumnRoles, ParsedField
from beacon_decoder.utils.url import RequestUrl

PROVIDER_ID = "SEGMENT"

PATTERN = re.compile(r"api\.segment\.io/")

_ACTION_RE = re.compile(r"/v1/([^/]+)$")

# Short and long endpoint names for each call type.
_ACTIONS = {
    "p": "Page",
    "page": "Page",
    "i": "Identify",
    "identify": "Identify",
    "t": "Track",
    "track": "Track",
    "s": "Screen",
    "screen": "Screen",
    "g": "Group",
    "group": "Group",
    "a": "Alias",
    "alias": "Alias",
    "b": "Batch",
    "batch": "Batch",
}


def derive(capability: Capability, url: RequestUrl, params: pipeline.ParamCollection) -> ParsedField | None:
    action = _ACTION_RE.search(url.path)
    if action is None:
        return None
    name = action.group(1).lower()
    return pipeline.make_field(capability, "requestType", _ACTIONS.get(name, name), hidden=True)


def build() -> Capability:
    """Build the Segment capability."""
    return Capability(
        id=PROVIDER_ID,
        name="Segment",
        category="analytics",
        pattern=PATTERN,
        keywords=("segment.io", "twilio segment"),
        column_roles=ColumnRoles(request_type="requestType"),
        derive=derive,
    )
