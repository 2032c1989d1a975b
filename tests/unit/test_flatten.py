"""
Unit tests for column sanitization and image flattening.

Tests cover:
- Sanitizer rules (invalid chars, leading digit, trailing underscores, case)
- Sanitizer idempotence and empty results
- Composite serialization and scalar passthrough
- Column collision policy
"""

import json

import pytest

from cdc_archive.transform.flatten import (
    flatten_image,
    sanitize_column_name,
    serialize_composite,
)


class TestSanitizeColumnName:
    """Tests for sanitize_column_name."""

    def test_leading_digit_gets_underscore(self):
        """Names starting with a digit are prefixed with an underscore."""
        assert sanitize_column_name("2cool") == "_2cool"

    def test_strips_invalid_chars_and_trailing_underscore(self):
        """Invalid characters and trailing underscores are removed, result lowercased."""
        assert sanitize_column_name("Foo-Bar_") == "foobar"

    def test_only_underscores_becomes_empty(self):
        """A name of only underscores sanitizes to the empty string."""
        assert sanitize_column_name("___") == ""

    def test_empty_string(self):
        """Empty input is accepted."""
        assert sanitize_column_name("") == ""

    def test_no_valid_chars(self):
        """Input with no valid characters yields the empty string."""
        assert sanitize_column_name("!@#$%^&*()") == ""

    def test_non_ascii_removed(self):
        """Non-ASCII letters and digits are not valid column characters."""
        assert sanitize_column_name("café_²") == "caf"

    def test_leading_underscore_kept(self):
        """Leading underscores survive."""
        assert sanitize_column_name("_private") == "_private"

    def test_digit_after_removed_prefix(self):
        """A digit exposed by removing invalid characters is prefixed."""
        assert sanitize_column_name("#1st") == "_1st"

    @pytest.mark.parametrize(
        "name",
        [
            "2cool",
            "Foo-Bar_",
            "___",
            "",
            "1_",
            "9",
            "CamelCase",
            "with space",
            "a__b__",
            "#1st",
            "ÄÖÜ123",
            "pk",
        ],
    )
    def test_idempotent(self, name):
        """Sanitizing twice equals sanitizing once."""
        once = sanitize_column_name(name)
        assert sanitize_column_name(once) == once


class TestFlattenImage:
    """Tests for flatten_image."""

    def test_list_becomes_json_text(self):
        """Lists are serialized; already-safe keys are unchanged."""
        flat = flatten_image({"pk": "POST#1", "sk": "META", "tags": ["a", "b"]})

        assert flat == {"pk": "POST#1", "sk": "META", "tags": '["a","b"]'}

    def test_nested_mapping_is_parseable(self):
        """Nested mappings serialize to valid JSON."""
        value = {"street": "Main", "geo": {"lat": 1.5, "lng": -2}}
        flat = flatten_image({"Address": value})

        assert json.loads(flat["address"]) == value

    def test_scalars_pass_through(self):
        """Strings, numbers, booleans and None are untouched."""
        image = {"s": "x", "i": 3, "f": 1.25, "b": False, "n": None}

        assert flatten_image(image) == image

    def test_keys_sanitized(self):
        """Every key goes through the sanitizer."""
        flat = flatten_image({"First-Name": "Al", "2fa": True})

        assert flat == {"firstname": "Al", "_2fa": True}

    def test_collision_last_write_wins(self):
        """Keys sanitizing to the same column keep the later value."""
        flat = flatten_image({"Name": "first", "name!": "second"})

        assert flat == {"name": "second"}

    def test_input_not_mutated(self):
        """The source image is left as it was."""
        image = {"Tags": ["a"]}
        flatten_image(image)

        assert image == {"Tags": ["a"]}

    def test_empty_image(self):
        """Empty image flattens to an empty mapping."""
        assert flatten_image({}) == {}


class TestSerializeComposite:
    """Tests for serialize_composite."""

    def test_compact_separators(self):
        """Output has no whitespace between tokens."""
        assert serialize_composite({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_non_ascii_preserved(self):
        """Unicode text is kept, not escaped."""
        assert serialize_composite(["héllo"]) == '["héllo"]'
