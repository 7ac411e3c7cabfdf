"""
Unit tests for the forward-only block extractor.
"""

import pytest

from mail_feed_agent.exceptions import MalformedDocument
from mail_feed_agent.extractor import (
    count_blocks,
    empty_placeholder,
    extract_block,
    iter_blocks,
)


class TestExtractBlock:
    """Tests for extract_block()."""

    def test_returns_value_and_cursor_past_closing_marker(self):
        document = "xx<title>Hi</title>yy"

        value, cursor = extract_block(document, 0, "title")

        assert value == "Hi"
        assert document[cursor:] == "yy"

    def test_empty_element_yields_placeholder(self):
        document = "<title></title><name>Ann</name>"

        value, cursor = extract_block(document, 0, "title")

        assert value == "--- no title ---"
        assert value == empty_placeholder("title")
        assert document[cursor:] == "<name>Ann</name>"

    def test_missing_opening_marker_raises(self):
        with pytest.raises(MalformedDocument):
            extract_block("<name>Ann</name>", 0, "title")

    def test_missing_closing_marker_raises(self):
        with pytest.raises(MalformedDocument):
            extract_block("<title>Hi and nothing else", 0, "title")

    def test_never_looks_before_cursor(self):
        document = "<title>First</title><title>Second</title>"
        _, cursor = extract_block(document, 0, "title")

        value, _ = extract_block(document, cursor, "title")

        assert value == "Second"

    def test_cursor_past_last_block_raises(self):
        document = "<title>Only</title>"
        _, cursor = extract_block(document, 0, "title")

        with pytest.raises(MalformedDocument):
            extract_block(document, cursor, "title")

    def test_does_not_match_longer_tag_names(self):
        document = "<titles>no</titles><title>yes</title>"

        value, _ = extract_block(document, 0, "title")

        assert value == "yes"


class TestCountBlocks:
    def test_counts_opening_markers(self):
        assert count_blocks("<a>1</a><b>2</b><a></a>", "a") == 2

    def test_zero_when_absent(self):
        assert count_blocks("", "entry") == 0


class TestIterBlocks:
    def test_yields_in_document_order(self):
        document = "<name>Ann</name> <name></name> <name>Bob</name>"

        assert list(iter_blocks(document, "name")) == ["Ann", "--- no name ---", "Bob"]

    def test_no_blocks_yields_nothing(self):
        assert list(iter_blocks("<feed></feed>", "name")) == []

    def test_unclosed_trailing_block_raises(self):
        with pytest.raises(MalformedDocument):
            list(iter_blocks("<name>Ann</name><name>Bob", "name"))
