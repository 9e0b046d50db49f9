"""
Unit tests for the AutoHeal data model.

Tests the cache entry trust model, cache keys and element descriptions.
"""

import pytest

from autoheal.models import (
    TRUST_THRESHOLD,
    CachedSelector,
    ElementContext,
    LocatorOptions,
    LocatorRequest,
    build_cache_key,
)


class TestCachedSelector:
    """Test CachedSelector success tracking."""

    def test_fresh_entry_is_fully_trusted(self):
        """Test that an entry without observations has a success rate of 1.0."""
        entry = CachedSelector("#user-name")

        assert entry.success_count == 0
        assert entry.failure_count == 0
        assert entry.current_success_rate == 1.0
        assert entry.is_trusted

    def test_update_success_counts(self):
        """Test that observations increment the right counter."""
        entry = CachedSelector("#user-name")

        entry.update_success(True)
        entry.update_success(True)
        entry.update_success(False)

        assert entry.success_count == 2
        assert entry.failure_count == 1
        assert entry.current_success_rate == pytest.approx(2 / 3)

    def test_rate_at_threshold_is_not_trusted(self):
        """Test that a rate of exactly 0.7 is below trust."""
        entry = CachedSelector("#user-name", success_count=7, failure_count=3)

        assert entry.current_success_rate == pytest.approx(TRUST_THRESHOLD)
        assert not entry.is_trusted

    def test_rate_above_threshold_is_trusted(self):
        """Test that a rate above 0.7 is trusted."""
        entry = CachedSelector("#user-name", success_count=8, failure_count=2)

        assert entry.is_trusted

    def test_single_failure_drops_trust(self):
        """Test that one failure on a fresh entry makes it untrusted."""
        entry = CachedSelector("#user-name")

        entry.update_success(False)

        assert entry.current_success_rate == 0.0
        assert not entry.is_trusted

    def test_is_expired(self):
        """Test expiry relative to the creation timestamp."""
        entry = CachedSelector("#user-name", timestamp=1_000)

        assert not entry.is_expired(ttl_ms=500, now=1_400)
        assert entry.is_expired(ttl_ms=500, now=1_501)

    def test_dict_round_trip(self):
        """Test serialization to and from a dict."""
        entry = CachedSelector("#user-name", timestamp=123, success_count=4, failure_count=1)

        restored = CachedSelector.from_dict(entry.to_dict())

        assert restored == entry

    def test_from_dict_accepts_camel_case(self):
        """Test loading entries written with camelCase counters."""
        entry = CachedSelector.from_dict({
            "selector": "#a",
            "timestamp": 5,
            "successCount": 3,
            "failureCount": 2,
        })

        assert entry.success_count == 3
        assert entry.failure_count == 2


class TestLocatorRequest:
    """Test LocatorRequest and cache keys."""

    def test_cache_key_format(self):
        """Test the selector|description key format."""
        assert build_cache_key("#username-field", "Username input field") == "#username-field|Username input field"

    def test_request_cache_key(self):
        """Test that requests derive their key from selector and description."""
        request = LocatorRequest("#a", "first")

        assert request.cache_key == "#a|first"
        assert LocatorRequest("#a", "second").cache_key != request.cache_key

    def test_default_options(self):
        """Test default request options."""
        options = LocatorRequest("#a", "b").options

        assert options == LocatorOptions()
        assert options.enable_caching is True
        assert options.timeout_ms == 30000

    def test_request_is_immutable(self):
        """Test that a request cannot be modified."""
        request = LocatorRequest("#a", "b")

        with pytest.raises(AttributeError):
            request.selector = "#c"


class TestElementContext:
    """Test the short element description."""

    def test_describe_full(self):
        """Test description with id, name, type and classes."""
        context = ElementContext(
            tag_name="input",
            id="user-name",
            class_name="input_error form_input extra",
            attributes={"name": "user-name", "type": "text"},
        )

        assert context.describe() == (
            '<input id="user-name" name="user-name" type="text" class="input_error form_input...">'
        )

    def test_describe_minimal(self):
        """Test description of a bare element."""
        assert ElementContext(tag_name="div").describe() == "<div>"
