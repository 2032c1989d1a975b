"""
Unit tests for record schema classification and archive keys.

Tests cover:
- Default classification rules and their order
- Case-insensitive pk prefixes
- Custom rule tables
- Archive key format
"""

import pytest

from cdc_archive.transform.keys import archive_key
from cdc_archive.transform.schema import (
    DEFAULT_RULES,
    RecordSchema,
    SchemaRule,
    classify,
)


class TestClassify:
    """Tests for classify."""

    def test_users_source(self):
        """Everything in the users source is a user."""
        assert classify("users", "USER#123", "-") == RecordSchema.USER

    def test_blog_post(self):
        """Blog items with a post prefix are posts."""
        assert classify("blog", "POST#1", "-") == RecordSchema.POST

    def test_blog_comment_mixed_case(self):
        """Prefix matching ignores case."""
        assert classify("blog", "Comment#9", "-") == RecordSchema.COMMENT

    def test_blog_other_prefix(self):
        """Unmatched blog items are unknown."""
        assert classify("blog", "Thing#1", "-") == RecordSchema.UNKNOWN

    def test_unknown_source(self):
        """Sources without rules are unknown."""
        assert classify("orders", "POST#1", "-") == RecordSchema.UNKNOWN

    def test_users_source_ignores_pk(self):
        """The users rule applies regardless of pk."""
        assert classify("users", "POST#1", "-") == RecordSchema.USER

    def test_sk_does_not_affect_result(self):
        """Sort key is accepted but not used by the default rules."""
        assert classify("blog", "POST#1", "COMMENT#1") == RecordSchema.POST

    def test_non_string_pk(self):
        """Numeric pk values are classified by their string form."""
        assert classify("blog", 42, "-") == RecordSchema.UNKNOWN

    @pytest.mark.parametrize("source", ["", "Users", "blog ", "BLOG"])
    def test_source_match_is_exact(self, source):
        """Source names must match exactly."""
        assert classify(source, "POST#1", "-") == RecordSchema.UNKNOWN

    def test_first_matching_rule_wins(self):
        """Earlier rules shadow later ones."""
        rules = (
            SchemaRule("blog", RecordSchema.COMMENT, pk_prefix="post"),
            *DEFAULT_RULES,
        )
        assert classify("blog", "POST#1", "-", rules=rules) == RecordSchema.COMMENT

    def test_empty_rules_fall_back_to_unknown(self):
        """With no rules every record is unknown."""
        assert classify("users", "USER#1", "-", rules=()) == RecordSchema.UNKNOWN

    def test_schema_values(self):
        """Labels are the lowercase names used in keys and payloads."""
        assert [s.value for s in RecordSchema] == ["user", "post", "comment", "unknown"]


class TestArchiveKey:
    """Tests for archive_key."""

    def test_key_format(self):
        """Key is source/schema/pk###sk.json."""
        key = archive_key("blog", RecordSchema.POST, "POST#1", "META")
        assert key == "blog/post/POST#1###META.json"

    def test_plain_string_schema(self):
        """A plain string label is accepted."""
        assert archive_key("users", "user", "USER#1", "PROFILE") == "users/user/USER#1###PROFILE.json"

    def test_pk_and_sk_not_escaped(self):
        """Path characters inside pk/sk are kept verbatim."""
        key = archive_key("blog", RecordSchema.UNKNOWN, "a/b", "c d")
        assert key == "blog/unknown/a/b###c d.json"
