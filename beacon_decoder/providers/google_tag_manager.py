"""Google Tag Manager container loads."""

from __future__ import annotations

import re

from beacon_decoder.data import loader
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ColumnRoles

PROVIDER_ID = "GOOGLETAGMAN"

PATTERN = re.compile(r"googletagmanager\.com/gtm\.js")


def build() -> Capability:
    """Build the Google Tag Manager capability (dictionary only)."""
    return Capability.from_tables(
        loader.get_provider_tables("google_tag_manager.json"),
        id=PROVIDER_ID,
        name="Google Tag Manager",
        category="tag-manager",
        pattern=PATTERN,
        keywords=("tms", "gtm"),
        column_roles=ColumnRoles(account="id"),
    )
