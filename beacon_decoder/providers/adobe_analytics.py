"""Adobe Analytics (SiteCatalyst / Omniture) beacons.

Context data arrives namespace-stacked (``c.``/``.c`` sentinels), so
the parameter list is run through the namespace stacker before
classification.  Numbered variable families (props, eVars, hierarchy
and list vars) are labelled from their index.
"""

from __future__ import annotations

import re

from beacon_decoder.data import loader
from beacon_decoder.engine import namespace_stack, normalizer, pipeline
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ColumnRoles, ParsedField
from beacon_decoder.utils.url import RequestUrl

PROVIDER_ID = "ADOBEANALYTICS"

PATTERN = re.compile(r"^([^#?]+)(/b/ss/)|\.2o7\.net/|\.sc\d?\.omtrdc\.net/(?!id)")

_RSID_RE = re.compile(r"/b/ss/([^/]+)/")
_JS_VERSION_RE = re.compile(r"/(JS-[^/]+)/", re.I)

_LINK_TYPES = {
    "lnk_e": "Exit Click",
    "lnk_d": "Download Click",
    "lnk_o": "Other Click",
}


# ── Classification rules ────────────────────────────────────────


def _numbered(label: str, group: str) -> pipeline.RuleHandler:
    def handler(capability: Capability, match: re.Match[str], name: str, value: str) -> ParsedField:
        return pipeline.make_field(capability, name, value, label=f"{label}{match.group(1)}", group=group)

    return handler


def _last_segment(group: str) -> pipeline.RuleHandler:
    def handler(capability: Capability, match: re.Match[str], name: str, value: str) -> ParsedField:
        return pipeline.make_field(capability, name, value, label=name.rsplit(".", 1)[-1], group=group)

    return handler


def _customer_id(capability: Capability, match: re.Match[str], name: str, value: str) -> ParsedField:
    return pipeline.make_field(capability, name, value, label=name.removeprefix("cid."), group="customerid")


def _context_data(capability: Capability, match: re.Match[str], name: str, value: str) -> ParsedField:
    return pipeline.make_field(capability, name, value, label=name.removeprefix("c."), group="context")


def _ignored(capability: Capability, match: re.Match[str], name: str, value: str) -> None:
    # Begin/end markers carry no data.
    return None


RULES: list[pipeline.Rule] = [
    (re.compile(r"^(?:c|prop)(\d+)$", re.I), _numbered("prop", "props")),
    (re.compile(r"^(?:v|eVar)(\d+)$", re.I), _numbered("eVar", "eVars")),
    (re.compile(r"^(?:h|hier)(\d+)$", re.I), _numbered("Hierarchy ", "hier")),
    (re.compile(r"^(?:l|list)(\d+)$", re.I), _numbered("List Var ", "listvar")),
    (re.compile(r"^.+\.a\.media\."), _last_segment("media")),
    (re.compile(r"^.+\.a\.activitymap\."), _last_segment("activity")),
    (re.compile(r"^cid\."), _customer_id),
    (re.compile(r"^[^.]+\."), _context_data),
    (re.compile(r"^(?:AQB|AQE)$", re.I), _ignored),
]


def classify(capability: Capability, name: str, value: str) -> ParsedField | None:
    return pipeline.classify_with_rules(RULES, capability, name, value)


# ── Derived fields ──────────────────────────────────────────────


def request_type(link_type: str | None) -> str:
    """Map the ``pe`` link type to a request type label."""
    if link_type in _LINK_TYPES:
        return _LINK_TYPES[link_type]
    if link_type and link_type.startswith("m_"):
        return "Media"
    return "Page View"


def derive(capability: Capability, url: RequestUrl, params: pipeline.ParamCollection) -> list[ParsedField]:
    results: list[ParsedField] = []

    rsid = _RSID_RE.search(url.path)
    if rsid:
        results.append(pipeline.make_field(capability, "rsid", rsid.group(1)))

    js_version = _JS_VERSION_RE.search(url.path)
    if js_version:
        results.append(pipeline.make_field(capability, "version", js_version.group(1)))

    results.append(
        pipeline.make_field(capability, "trackingServer", url.hostname, label="Tracking Server", group="general")
    )
    results.append(pipeline.make_field(capability, "requestType", request_type(params.get("pe")), hidden=True))
    return results


def build() -> Capability:
    """Build the Adobe Analytics capability."""
    return Capability.from_tables(
        loader.get_provider_tables("adobe_analytics.json"),
        id=PROVIDER_ID,
        name="Adobe Analytics",
        category="analytics",
        pattern=PATTERN,
        keywords=("aa", "site catalyst", "sitecatalyst", "omniture"),
        column_roles=ColumnRoles(account="rsid", request_type="requestType"),
        classify=classify,
        decode_body=normalizer.decode_query_body,
        prepare_params=namespace_stack.stack_namespaces,
        derive=derive,
    )
