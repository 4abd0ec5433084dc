"""Tests for lisa.lib.reqparse module."""

import logging

from lisa.lib.reqparse import (
    parse_requirement_heading,
    parse_requirements,
    requirement_ids,
    strip_comments,
)


class TestParseRequirementHeading:

    def test_plain_heading(self):
        assert parse_requirement_heading("### R1: Login", "E1") == ("E1.R1", "Login")

    def test_prefixed_heading(self):
        assert parse_requirement_heading("### E1.R12: Reset password", "E1") == ("E1.R12", "Reset password")

    def test_foreign_prefix_normalized_to_owner(self):
        assert parse_requirement_heading("### E7.R2: Moved", "E3") == ("E3.R2", "Moved")

    def test_digits_kept_as_written(self):
        assert parse_requirement_heading("### R01: Padded", "E1") == ("E1.R01", "Padded")

    def test_empty_title_allowed(self):
        assert parse_requirement_heading("### R4:", "E1") == ("E1.R4", "")

    def test_trailing_whitespace_trimmed(self):
        assert parse_requirement_heading("### R2:   Spaced out   ", "E1") == ("E1.R2", "Spaced out")

    def test_rejects_other_levels_and_shapes(self):
        for line in (
            "## R1: Level two",
            "#### R1: Level four",
            " ### R1: Indented",
            "### R1 Login",
            "### Requirement 1: Login",
            "### S1: Story",
        ):
            assert parse_requirement_heading(line, "E1") is None, line


class TestParseRequirements:

    def test_document_order_and_line_numbers(self):
        prd = "# PRD\n\n### R2: Second\ntext\n### R1: First\n"
        reqs = parse_requirements(prd, "E1")
        assert [r.id for r in reqs] == ["E1.R2", "E1.R1"]
        assert [r.line_number for r in reqs] == [3, 5]

    def test_empty_and_none(self):
        assert parse_requirements("", "E1") == []
        assert parse_requirements(None, "E1") == []

    def test_fenced_blocks_ignored(self):
        prd = "### R1: Real\n```markdown\n### R2: Example\n```\n~~~\n### R3: Also example\n~~~\n### R4: Real too\n"
        assert requirement_ids(prd, "E1") == ["E1.R1", "E1.R4"]

    def test_html_comments_ignored(self):
        prd = "### R1: Real\n<!--\n### R2: Commented out\n-->\n### R3: Real\n"
        assert requirement_ids(prd, "E1") == ["E1.R1", "E1.R3"]

    def test_duplicates_reported_once(self, caplog):
        prd = "### R1: First\n### E1.R1: Again\n"
        with caplog.at_level(logging.WARNING):
            reqs = parse_requirements(prd, "E1")
        assert [(r.id, r.title) for r in reqs] == [("E1.R1", "First")]
        assert "Duplicate requirement heading E1.R1 at line 2" in caplog.text

    def test_inline_comment_after_title(self):
        prd = "### R1: Login <!-- see design -->\n### R2: Logout\n"
        reqs = parse_requirements(prd, "E1")
        assert [(r.id, r.title) for r in reqs] == [("E1.R1", "Login"), ("E1.R2", "Logout")]

    def test_arrow_in_title_is_text(self):
        prd = "### R1: Redirect user --> dashboard\n"
        reqs = parse_requirements(prd, "E1")
        assert [(r.id, r.title) for r in reqs] == [("E1.R1", "Redirect user --> dashboard")]

    def test_single_line_comment_hides_heading(self):
        prd = "<!-- ### R1: Hidden -->\n### R2: Shown\n"
        assert requirement_ids(prd, "E1") == ["E1.R2"]

    def test_fence_inside_comment_does_not_toggle(self):
        prd = "<!--\n```\n-->\n### R1: Real\n"
        assert requirement_ids(prd, "E1") == ["E1.R1"]

    def test_padded_and_plain_numbers_are_distinct(self):
        assert requirement_ids("### R1: One\n### R01: Also one\n", "E1") == ["E1.R1", "E1.R01"]


class TestStripComments:

    def test_no_comment(self):
        assert strip_comments("plain --> text", False) == ("plain --> text", False)

    def test_closed_span_removed(self):
        assert strip_comments("a <!-- b --> c", False) == ("a  c", False)

    def test_open_span_carries_over(self):
        assert strip_comments("a <!-- b", False) == ("a ", True)

    def test_close_of_earlier_comment(self):
        assert strip_comments("b --> c", True) == (" c", False)

    def test_whole_line_inside_comment(self):
        assert strip_comments("### R1: x", True) == ("", True)
