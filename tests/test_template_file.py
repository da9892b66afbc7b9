"""Tests for command template parsing."""
import pytest

from mdcmd import ParseError, load_template, parse_template


class TestParseTemplate:
    def test_front_matter_and_body(self):
        raw = "---\ndescription: Review a branch\nargument-hint: <branch>\n---\nReview $1\n"
        template = parse_template(raw)
        assert template.metadata == {
            "description": "Review a branch",
            "argument-hint": "<branch>",
        }
        assert template.body == "Review $1"
        assert template.raw == raw

    def test_accessors(self):
        template = parse_template("---\ndescription: Hi\nargument-hint: <name>\n---\nbody")
        assert template.description == "Hi"
        assert template.argument_hint == "<name>"

    def test_accessors_default_to_none(self):
        template = parse_template("just a body")
        assert template.description is None
        assert template.argument_hint is None

    def test_no_front_matter(self):
        template = parse_template("Hello $ARGUMENTS")
        assert template.metadata == {}
        assert template.body == "Hello $ARGUMENTS"

    def test_empty_input(self):
        template = parse_template("")
        assert template.metadata == {}
        assert template.body == ""
        assert template.raw == ""

    def test_front_matter_only(self):
        template = parse_template("---\nmodel: fast\n---\n")
        assert template.metadata == {"model": "fast"}
        assert template.body == ""

    def test_malformed_yaml_raises_parse_error(self):
        with pytest.raises(ParseError, match="Failed to parse command template"):
            parse_template("---\nallowed: [unclosed\n---\nbody")

    def test_parse_error_keeps_parser_detail(self):
        with pytest.raises(ParseError) as exc_info:
            parse_template("---\nkey: {broken\n---\nbody")
        assert exc_info.value.detail

    def test_non_mapping_front_matter_is_ignored(self):
        template = parse_template("---\n- a\n- b\n---\nbody")
        assert template.metadata == {}
        assert template.body == "body"

    def test_brace_line_body_is_not_front_matter(self):
        raw = '{\n"step": 1\n}\nDo the thing'
        template = parse_template(raw)
        assert template.metadata == {}
        assert template.body == raw

    def test_invalid_json_looking_body_is_kept(self):
        raw = "{\nsee @notes.md\n}\n!echo hi"
        assert parse_template(raw).body == raw

    def test_plus_fenced_block_is_not_front_matter(self):
        raw = "+++\ntitle = 'x'\n+++\nbody"
        template = parse_template(raw)
        assert template.metadata == {}
        assert template.body == raw

    def test_horizontal_rule_inside_body_is_kept(self):
        raw = "Intro\n---\nkey: value\n---\nOutro"
        template = parse_template(raw)
        assert template.metadata == {}
        assert template.body == raw

    def test_surrounding_whitespace_is_stripped(self):
        assert parse_template("\n  indented\n\n\n").body == "indented"

    def test_markers_left_untouched(self):
        template = parse_template("See @notes.md\n!git status\n$1")
        assert template.body == "See @notes.md\n!git status\n$1"


def test_load_template(tmp_path):
    path = tmp_path / "review.md"
    path.write_text("---\ndescription: Review\n---\nBody text", encoding="utf-8")
    template = load_template(path)
    assert template.description == "Review"
    assert template.body == "Body text"
