"""Tealium iQ tag-manager library loads."""

from __future__ import annotations

import re

from beacon_decoder.engine import pipeline
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ColumnRoles, GroupSpec, ParsedField
from beacon_decoder.utils.url import RequestUrl

PROVIDER_ID = "TEALIUMIQ"

PATTERN = re.compile(r"tags\.tiqcdn\.com/utag/((?=.*utag\.js)|(?=.*utag\.sync\.js))")

_LIBRARY_RE = re.compile(r"^/utag/([^/]+)/([^/]+)/([^/]+)/(utag(?:\.sync)?\.js)")


def derive(capability: Capability, url: RequestUrl, params: pipeline.ParamCollection) -> list[ParsedField]:
    match = _LIBRARY_RE.search(url.path)
    if match is None:
        return []

    account, profile, environment, library = match.groups()
    return [
        pipeline.make_field(capability, "accountProfile", f"{account} / {profile}", hidden=True),
        pipeline.make_field(capability, "account", account, label="Account", group="general"),
        pipeline.make_field(capability, "profile", profile, label="Profile", group="general"),
        pipeline.make_field(capability, "environment", environment, label="Environment", group="general"),
        pipeline.make_field(
            capability, "requestType", "Async" if library == "utag.js" else "Sync", hidden=True
        ),
    ]


def build() -> Capability:
    """Build the Tealium iQ capability."""
    return Capability(
        id=PROVIDER_ID,
        name="Tealium IQ",
        category="tag-manager",
        pattern=PATTERN,
        keywords=("tms",),
        groups=(GroupSpec(key="general", label="General"),),
        column_roles=ColumnRoles(account="accountProfile", request_type="requestType"),
        derive=derive,
    )
