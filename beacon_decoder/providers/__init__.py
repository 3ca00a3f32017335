"""Bundled vendor capabilities.

Each module exposes ``PROVIDER_ID``, ``PATTERN`` and a ``build()``
that returns its ``Capability``.  ``build_registry()`` registers them
all, in the order below, into a fresh ``ProviderRegistry``; resolution
is first-match-wins so this order is significant.

``get_registry()`` returns a process-wide registry created once, via
``functools.lru_cache``.  Hosts that need a different provider set
should build their own registry rather than mutate the shared one.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable

from beacon_decoder import config
from beacon_decoder.engine.registry import ProviderRegistry
from beacon_decoder.models.capability import Capability
from beacon_decoder.providers import (
    adobe_analytics,
    adobe_audience_manager,
    facebook_pixel,
    google_tag_manager,
    optimizely_x,
    segment,
    tealium_iq,
    universal_analytics,
)
from beacon_decoder.utils import logger

log = logger.create_logger("Providers")

BUILDERS: tuple[Callable[[], Capability], ...] = (
    adobe_analytics.build,
    adobe_audience_manager.build,
    facebook_pixel.build,
    google_tag_manager.build,
    optimizely_x.build,
    segment.build,
    tealium_iq.build,
    universal_analytics.build,
)


def build_capabilities() -> list[Capability]:
    """Build every bundled capability in registration order."""
    return [build() for build in BUILDERS]


def build_registry() -> ProviderRegistry:
    """Create a registry holding every bundled capability."""
    log.start_timer("build-registry")
    registry = ProviderRegistry(build_capabilities())
    log.end_timer("build-registry", f"Registered {len(registry)} providers")
    log.info("Provider registry ready", {"providers": len(registry)})
    return registry


@functools.lru_cache(maxsize=1)
def get_registry() -> ProviderRegistry:
    """Get the shared registry of bundled providers."""
    return build_registry()


def capture_pattern(registry: ProviderRegistry | None = None) -> re.Pattern[str]:
    """Pattern over providers not disabled by ``BEACON_DISABLED_PROVIDERS``."""
    if registry is None:
        registry = get_registry()
    return registry.effective_pattern(config.get_settings().provider_states())
