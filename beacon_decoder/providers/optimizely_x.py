"""Optimizely X event logging."""

from __future__ import annotations

import re

from beacon_decoder.engine import normalizer
from beacon_decoder.models.capability import Capability
from beacon_decoder.models.results import ColumnRoles

PROVIDER_ID = "OPTIMIZELYX"

PATTERN = re.compile(r"\.optimizely\.com/log/event")


def build() -> Capability:
    """Build the Optimizely X capability.

    There is no dictionary: every parameter, including the
    flattened JSON body, is shown under its raw name.
    """
    return Capability(
        id=PROVIDER_ID,
        name="Optimizely X",
        category="testing",
        pattern=PATTERN,
        keywords=("optimizely",),
        column_roles=ColumnRoles(account="mbox"),
        decode_body=normalizer.decode_json_body,
    )
