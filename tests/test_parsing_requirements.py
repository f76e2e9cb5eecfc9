"""Tests for the requirements parser."""

from __future__ import annotations

import pytest

from figqa.parsing.requirements import FALLBACK_REQUIREMENT, parse_requirements


class TestLabelledTier:
    def test_req_labels(self) -> None:
        parsed = parse_requirements("REQ-1: Allow login.\nREQ-2: Show dashboard.")
        assert parsed.items == ["Allow login.", "Show dashboard."]
        assert parsed.tier == "labelled"
        assert parsed.degraded is False

    def test_numbered_and_requirement_labels(self) -> None:
        text = (
            "## Requirements\n\n"
            "1. Users can reset their password by email\n"
            "2. Users can update their profile picture\n"
            "Requirement 3: Admins can deactivate accounts\n"
        )
        parsed = parse_requirements(text)
        assert parsed.items == [
            "Users can reset their password by email",
            "Users can update their profile picture",
            "Admins can deactivate accounts",
        ]

    def test_bold_and_bulleted_labels(self) -> None:
        text = "- **REQ-1:** The system shall log users in.\n* **REQ-2**: The system shall log users out."
        parsed = parse_requirements(text)
        assert parsed.items == ["The system shall log users in.", "The system shall log users out."]

    def test_continuation_lines_joined_until_blank_line(self) -> None:
        text = "REQ-1: The system shall allow users\n  to log in with email.\n\nSome closing remark."
        parsed = parse_requirements(text)
        assert parsed.items == ["The system shall allow users to log in with email."]

    def test_trailing_prose_not_merged_into_last_item(self) -> None:
        text = "REQ-1: Allow login.\nREQ-2: Show dashboard.\nThese cover everything in the design."
        assert parse_requirements(text).items == ["Allow login.", "Show dashboard."]

    def test_prose_before_list_ignored(self) -> None:
        text = "Here are the functional requirements:\n\nREQ-1: Allow login.\nREQ-2: Show dashboard.\n"
        assert parse_requirements(text).items == ["Allow login.", "Show dashboard."]


class TestFallbackTiers:
    def test_line_filter(self) -> None:
        text = (
            "# Functional requirements\n"
            "Overview:\n"
            "Short line\n"
            "The dashboard shows a list of recent orders\n"
            "- Users can filter orders by status\n"
        )
        parsed = parse_requirements(text)
        assert parsed.tier == "lines"
        assert parsed.degraded is True
        assert parsed.items == [
            "The dashboard shows a list of recent orders",
            "Users can filter orders by status",
        ]

    def test_sentence_split(self) -> None:
        # Every line is a header or colon-terminated, so only sentence splitting finds content.
        text = "# Users must be able to sign in with a password. Sessions expire after one hour of inactivity:"
        parsed = parse_requirements(text)
        assert parsed.tier == "sentences"
        assert parsed.items[-1] == "Sessions expire after one hour of inactivity:"

    @pytest.mark.parametrize("text", ["", "   \n\t ", None, "ok", "# Title\n## Sub"])
    def test_never_empty(self, text) -> None:
        parsed = parse_requirements(text)
        assert parsed.items == [FALLBACK_REQUIREMENT]
        assert parsed.tier == "fallback"
        assert parsed.degraded is True

    @pytest.mark.parametrize(
        "text",
        [
            "Lorem ipsum dolor sit amet, consectetur adipiscing elit.",
            "I'm sorry, I cannot help with that request.",
            "{\"json\": true}",
            "REQ-",
        ],
    )
    def test_arbitrary_text_yields_at_least_one(self, text: str) -> None:
        assert len(parse_requirements(text).items) >= 1
