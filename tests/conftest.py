"""Shared fixtures for the test suite."""

from __future__ import annotations

import re
from collections.abc import Iterator

import pytest

from beacon_decoder import config
from beacon_decoder.engine import pipeline
from beacon_decoder.engine.registry import ProviderRegistry
from beacon_decoder.models.capability import Capability, ParamSpec
from beacon_decoder.models.results import GroupSpec, ParsedField
from beacon_decoder.providers import build_registry
from beacon_decoder.utils import logger

# ── Settings and log state ──────────────────────────────────────


@pytest.fixture(autouse=True)
def _fresh_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate each test from the environment and earlier log output."""
    for name in ("BEACON_LOG_LEVEL", "BEACON_DISABLED_PROVIDERS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config.dotenv, "load_dotenv", lambda *a, **kw: False)
    config.get_settings.cache_clear()
    logger.clear_log_buffer()
    yield
    config.get_settings.cache_clear()


# ── Capability Factories ────────────────────────────────────────


@pytest.fixture()
def vendor_a() -> Capability:
    """A minimal vendor with a one-entry dictionary."""
    return Capability(
        id="VENDORA",
        name="Vendor A",
        category="analytics",
        pattern=re.compile(r"vendor-a\.example/collect"),
        params={"id": ParamSpec(label="Account ID", group="general")},
        groups=(GroupSpec(key="general", label="General"),),
    )


@pytest.fixture()
def vendor_with_hidden() -> Capability:
    """A vendor whose ``secret`` parameter only feeds a derived field."""

    def derive(capability: Capability, url: object, params: pipeline.ParamCollection) -> ParsedField:
        return pipeline.make_field(capability, "requestType", params.get("secret") or "", hidden=True)

    return Capability(
        id="HIDDEN",
        name="Hidden Vendor",
        category="marketing",
        pattern=r"hidden\.example/",
        params={
            "secret": ParamSpec(hidden=True),
            "shown": ParamSpec(label="Shown", group="general"),
        },
        derive=derive,
    )


# ── Registries ──────────────────────────────────────────────────


@pytest.fixture()
def registry() -> ProviderRegistry:
    """A fresh registry holding every bundled vendor."""
    return build_registry()


@pytest.fixture()
def empty_registry() -> ProviderRegistry:
    """A registry with nothing registered."""
    return ProviderRegistry()
