"""Tests for beacon_decoder.engine.registry — provider resolution."""

from __future__ import annotations

import re
from unittest import mock

import pytest

from beacon_decoder.engine import registry as registry_module
from beacon_decoder.engine.registry import FALLBACK_CAPABILITY, ProviderRegistry
from beacon_decoder.models.capability import Capability
from beacon_decoder.utils.errors import DuplicateProviderError, UrlParseError

SHARED_URL = "https://shared.example/track?x=1"

VENDOR_URLS = {
    "ADOBEANALYTICS": "https://metrics.example.com/b/ss/rsid/1/JS-2.22.0/s123?pageName=Home",
    "ADOBEAUDIENCEMANAGER": "https://dpm.demdex.net/ibs:dpid=411&dpuuid=abc",
    "FACEBOOKPIXEL": "https://www.facebook.com/tr/?id=1&ev=PageView",
    "GOOGLETAGMAN": "https://www.googletagmanager.com/gtm.js?id=GTM-ABC",
    "OPTIMIZELYX": "https://logx.optimizely.com/log/event",
    "SEGMENT": "https://api.segment.io/v1/t",
    "TEALIUMIQ": "https://tags.tiqcdn.com/utag/acme/main/prod/utag.js",
    "UNIVERSALANALYTICS": "https://www.google-analytics.com/collect?v=1&t=pageview",
}

UNTRACKED_URLS = [
    "https://example.com/",
    "https://cdn.example.com/app.js?v=2",
    "https://www.facebook.com/profile",
    "https://www.google-analytics.com/analytics.js",
    "https://tags.tiqcdn.com/utag/acme/main/prod/utag.123.js",
]


def _shared(provider_id: str) -> Capability:
    return Capability(id=provider_id, name=provider_id.title(), pattern=r"shared\.example/track")


class TestRegister:
    """Tests for ProviderRegistry.register()."""

    def test_registration_order_is_kept(self) -> None:
        registry = ProviderRegistry([_shared("FIRST"), _shared("SECOND")])
        assert [c.id for c in registry.providers()] == ["FIRST", "SECOND"]
        assert [c.id for c in registry] == ["FIRST", "SECOND"]

    def test_duplicate_id_is_rejected(self) -> None:
        registry = ProviderRegistry([_shared("FIRST")])
        with pytest.raises(DuplicateProviderError) as exc_info:
            registry.register(_shared("FIRST"))
        assert exc_info.value.provider_id == "FIRST"
        assert len(registry) == 1

    def test_lookup_by_id(self) -> None:
        registry = ProviderRegistry([_shared("FIRST")])
        assert "FIRST" in registry
        assert registry.get("FIRST") is not None
        assert registry.get("MISSING") is None

    def test_failed_registration_leaves_registry_unchanged(self) -> None:
        registry = ProviderRegistry([_shared("FIRST")])
        composite = registry.composite_pattern
        with mock.patch.object(registry_module, "_combine", side_effect=re.error("bad pattern")):
            with pytest.raises(re.error):
                registry.register(Capability(id="SECOND", name="Second", pattern=r"second\.example"))
        assert len(registry) == 1
        assert "SECOND" not in registry
        assert registry.composite_pattern is composite
        assert registry.matches_any("https://second.example/") is False
        assert registry.resolve("https://second.example/") is FALLBACK_CAPABILITY

    def test_pre_filter_alias(self) -> None:
        assert ProviderRegistry.fast_reject is ProviderRegistry.matches_any


class TestResolve:
    """Tests for ProviderRegistry.resolve()."""

    def test_first_registered_wins(self) -> None:
        assert ProviderRegistry([_shared("FIRST"), _shared("SECOND")]).resolve(SHARED_URL).id == "FIRST"
        assert ProviderRegistry([_shared("SECOND"), _shared("FIRST")]).resolve(SHARED_URL).id == "SECOND"

    def test_unmatched_url_gets_fallback(self, registry: ProviderRegistry) -> None:
        assert registry.resolve("https://example.com/") is FALLBACK_CAPABILITY

    def test_empty_registry_gets_fallback(self, empty_registry: ProviderRegistry) -> None:
        assert empty_registry.resolve(SHARED_URL) is FALLBACK_CAPABILITY

    @pytest.mark.parametrize(("provider_id", "url"), sorted(VENDOR_URLS.items()))
    def test_bundled_vendors(self, registry: ProviderRegistry, provider_id: str, url: str) -> None:
        assert registry.resolve(url).id == provider_id


class TestMatchesAny:
    """Tests for ProviderRegistry.matches_any()."""

    @pytest.mark.parametrize("url", sorted(VENDOR_URLS.values()))
    def test_accepts_every_vendor_url(self, registry: ProviderRegistry, url: str) -> None:
        assert registry.matches_any(url) is True

    @pytest.mark.parametrize("url", [*UNTRACKED_URLS, *sorted(VENDOR_URLS.values())])
    def test_rejection_implies_fallback(self, registry: ProviderRegistry, url: str) -> None:
        if not registry.matches_any(url):
            assert registry.resolve(url) is FALLBACK_CAPABILITY

    def test_rejects_plain_page(self, registry: ProviderRegistry) -> None:
        assert registry.matches_any("https://example.com/") is False

    def test_empty_registry_rejects_everything(self, empty_registry: ProviderRegistry) -> None:
        assert empty_registry.matches_any(SHARED_URL) is False
        assert empty_registry.matches_any("") is False

    def test_composite_tracks_registration(self, empty_registry: ProviderRegistry) -> None:
        empty_registry.register(_shared("FIRST"))
        assert empty_registry.matches_any(SHARED_URL) is True
        assert empty_registry.composite_pattern.search(SHARED_URL) is not None


class TestCompositeFlags:
    """Composite pattern keeps each vendor's own regex flags and groups."""

    @pytest.mark.parametrize(
        ("pattern", "url"),
        [
            (re.compile(r"vendor \. example / collect  # beacon endpoint", re.X), "https://vendor.example/collect"),
            (re.compile(r"start.end", re.S), "https://s.example/?q=start\nend"),
            (re.compile(r"^collect", re.M), "https://m.example/\ncollect"),
            (re.compile(r"(?i)B\.EXAMPLE/"), "https://b.example/"),
            (re.compile(r"(?s)start.end"), "https://s.example/?q=start\nend"),
            (re.compile(r"(a)\1\.example"), "https://aa.example/"),
            (re.compile(r"(?P<tag>t+)(?P=tag)\.example"), "https://tttt.example/"),
        ],
    )
    def test_composite_accepts_what_the_vendor_accepts(self, pattern: re.Pattern[str], url: str) -> None:
        registry = ProviderRegistry(
            [Capability(id="FLAGGED", name="Flagged", pattern=pattern), _shared("AFTER")]
        )
        assert registry.resolve(url).id == "FLAGGED"
        assert registry.matches_any(url) is True
        assert registry.matches_any(SHARED_URL) is True
        assert registry.effective_pattern().search(url) is not None

    def test_verbose_branch_does_not_swallow_later_branches(self) -> None:
        registry = ProviderRegistry(
            [Capability(id="VERBOSE", name="Verbose", pattern=re.compile(r"v\.example  # trailing", re.X))]
        )
        registry.register(_shared("AFTER"))
        assert registry.resolve(SHARED_URL).id == "AFTER"
        assert registry.matches_any(SHARED_URL) is True

    def test_repeated_group_names_across_vendors(self) -> None:
        registry = ProviderRegistry(
            [
                Capability(id="ONE", name="One", pattern=r"(?P<host>one)\.example"),
                Capability(id="TWO", name="Two", pattern=r"(?P<host>two)\.example"),
            ]
        )
        assert registry.matches_any("https://one.example/") is True
        assert registry.matches_any("https://two.example/") is True
        assert registry.matches_any("https://three.example/") is False


class TestParse:
    """Tests for ProviderRegistry.parse()."""

    def test_vendor_result(self, registry: ProviderRegistry) -> None:
        result = registry.parse("https://www.googletagmanager.com/gtm.js?id=GTM-ABC")
        assert result.vendor.id == "GOOGLETAGMAN"
        assert result.account == "GTM-ABC"

    def test_fallback_result_is_empty(self, registry: ProviderRegistry) -> None:
        result = registry.parse("https://example.com/page?a=1", "b=2")
        assert result.vendor.id == ""
        assert result.vendor.name == ""
        assert result.vendor.category == "unknown"
        assert result.vendor.category_label == "Unknown"
        assert result.fields == []

    def test_unparseable_url_raises(self, registry: ProviderRegistry) -> None:
        with pytest.raises(UrlParseError):
            registry.parse("not a url")


class TestEffectivePattern:
    """Tests for ProviderRegistry.effective_pattern()."""

    def test_everything_enabled_by_default(self, registry: ProviderRegistry) -> None:
        pattern = registry.effective_pattern()
        assert all(pattern.search(url) for url in VENDOR_URLS.values())

    def test_disabled_by_bool(self, registry: ProviderRegistry) -> None:
        pattern = registry.effective_pattern({"SEGMENT": False})
        assert pattern.search(VENDOR_URLS["SEGMENT"]) is None
        assert pattern.search(VENDOR_URLS["UNIVERSALANALYTICS"]) is not None

    @pytest.mark.parametrize(("state", "matches"), [({"enabled": True}, True), ({"enabled": False}, False), ({}, False)])
    def test_mapping_state(self, registry: ProviderRegistry, state: dict[str, bool], matches: bool) -> None:
        pattern = registry.effective_pattern({"SEGMENT": state})
        assert (pattern.search(VENDOR_URLS["SEGMENT"]) is not None) is matches

    def test_all_disabled_matches_nothing(self, registry: ProviderRegistry) -> None:
        pattern = registry.effective_pattern({c.id: False for c in registry})
        assert pattern.search("") is None
        assert not any(pattern.search(url) for url in VENDOR_URLS.values())

    def test_empty_registry_matches_nothing(self, empty_registry: ProviderRegistry) -> None:
        assert empty_registry.effective_pattern().search("anything") is None

    def test_is_case_insensitive(self, registry: ProviderRegistry) -> None:
        assert registry.effective_pattern().search("https://API.SEGMENT.IO/v1/t") is not None
