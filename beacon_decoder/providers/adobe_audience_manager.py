"""Adobe Audience Manager (demdex) ID-sync and event calls.

ID syncs carry their parameters in the path (``/ibs:dpid=1&dpuuid=2``),
so those are appended to the query parameters before classification.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from urllib import parse

from beacon_decoder.data import loader
from beacon_decoder.engine import pipeline
from beacon_decoder.models.capability import Capability, Pair
from beacon_decoder.models.results import ColumnRoles, ParsedField
from beacon_decoder.utils.url import RequestUrl

PROVIDER_ID = "ADOBEAUDIENCEMANAGER"

PATTERN = re.compile(r"demdex\.net/(ibs|event)[?/#:]")

_PATH_PARAMS_PREFIX = "/ibs:"
_ACTION_RE = re.compile(r"^/([^?/#:]+)")
_ACTIONS = {"ibs": "ID Sync", "event": "Event"}


def collect_params(url: RequestUrl, query_pairs: Sequence[Pair], body_pairs: Sequence[Pair]) -> list[Pair]:
    """Query pairs followed by any pairs packed into an ``/ibs:`` path.

    The POST body is never part of these calls.
    """
    pairs = list(query_pairs)
    if url.path.startswith(_PATH_PARAMS_PREFIX):
        for field in url.path.removeprefix(_PATH_PARAMS_PREFIX).split("&"):
            if not field:
                continue
            name, _, value = field.partition("=")
            pairs.append((parse.unquote(name), parse.unquote(value)))
    return pairs


# ── Classification rules ────────────────────────────────────────


def _attribute(group: str) -> pipeline.RuleHandler:
    def handler(capability: Capability, match: re.Match[str], name: str, value: str) -> ParsedField:
        return pipeline.make_field(capability, name, value, label=name, group=group)

    return handler


def _aliased(capability: Capability, match: re.Match[str], name: str, value: str) -> ParsedField:
    spec = capability.params.get(match.group(1))
    if spec is None or spec.hidden:
        return pipeline.default_classify(capability, name, value)
    return pipeline.make_field(capability, name, value, label=spec.label, group=spec.group)


RULES: list[pipeline.Rule] = [
    (re.compile(r"^c_(.+)$", re.I), _attribute("customer")),
    (re.compile(r"^p_(.+)$", re.I), _attribute("private")),
    (re.compile(r"^d_(.+)$", re.I), _aliased),
]


def classify(capability: Capability, name: str, value: str) -> ParsedField | None:
    return pipeline.classify_with_rules(RULES, capability, name, value)


# ── Derived fields ──────────────────────────────────────────────


def account_of(hostname: str) -> str:
    """The customer prefix of a demdex host; the shared ``dpm`` host has none."""
    prefix = re.sub(r"\.?demdex\.net$", "", hostname, flags=re.I)
    return "" if prefix.lower() == "dpm" else prefix


def derive(capability: Capability, url: RequestUrl, params: pipeline.ParamCollection) -> list[ParsedField]:
    action = _ACTION_RE.search(url.path)
    action_name = action.group(1) if action else ""
    return [
        pipeline.make_field(capability, "accountId", account_of(url.hostname), hidden=True),
        pipeline.make_field(
            capability, "requestType", _ACTIONS.get(action_name, action_name), hidden=True
        ),
    ]


def build() -> Capability:
    """Build the Adobe Audience Manager capability."""
    return Capability.from_tables(
        loader.get_provider_tables("adobe_audience_manager.json"),
        id=PROVIDER_ID,
        name="Adobe Audience Manager",
        category="visitor-id",
        pattern=PATTERN,
        keywords=("aam", "demdex"),
        column_roles=ColumnRoles(account="accountId", request_type="requestType"),
        classify=classify,
        decode_body=pipeline.ignore_body,
        collect_params=collect_params,
        derive=derive,
    )
