"""Tests for the text-preserving dependency version rewriter."""

from __future__ import annotations

import pytest

from pubgrade.manifest.models import DependencySection
from pubgrade.manifest.rewriter import (
    OUTSIDE,
    Inside,
    next_state,
    rewrite_dependency_version,
    scan_sections,
)

_ALL = frozenset(DependencySection)


def _lines(*lines: str) -> str:
    return "\n".join(lines)


# ── state machine ────────────────────────────────────────────────────────


class TestNextState:
    def test_header_enters_targeted_section(self):
        state, is_entry = next_state(OUTSIDE, "dependencies:", _ALL)
        assert state == Inside(DependencySection.DEPENDENCIES, 0)
        assert not is_entry

    def test_header_with_comment(self):
        state, _ = next_state(OUTSIDE, "dev_dependencies:  # tools", _ALL)
        assert state == Inside(DependencySection.DEV_DEPENDENCIES, 0)

    def test_untargeted_header_leaves_section(self):
        inside = Inside(DependencySection.DEPENDENCIES, 0)
        targets = frozenset({DependencySection.DEPENDENCIES})
        state, _ = next_state(inside, "dev_dependencies:", targets)
        assert state == OUTSIDE

    def test_header_with_trailing_value_is_not_header(self):
        state, _ = next_state(OUTSIDE, "dependencies: foo", _ALL)
        assert state == OUTSIDE

    def test_blank_and_comment_keep_section(self):
        inside = Inside(DependencySection.DEPENDENCIES, 0)
        for line in ("", "   ", "# comment", "  # indented comment"):
            state, is_entry = next_state(inside, line, _ALL)
            assert state == inside
            assert not is_entry

    def test_dedent_ends_section(self):
        inside = Inside(DependencySection.DEPENDENCIES, 0)
        state, is_entry = next_state(inside, "flutter:", _ALL)
        assert state == OUTSIDE
        assert not is_entry

    def test_equal_indent_ends_nested_section(self):
        inside = Inside(DependencySection.DEPENDENCIES, 2)
        state, _ = next_state(inside, "  other:", _ALL)
        assert state == OUTSIDE

    def test_deeper_line_is_entry(self):
        inside = Inside(DependencySection.DEPENDENCIES, 0)
        state, is_entry = next_state(inside, "  http: ^1.0.0", _ALL)
        assert state == inside
        assert is_entry

    def test_outside_lines_are_never_entries(self):
        state, is_entry = next_state(OUTSIDE, "  http: ^1.0.0", _ALL)
        assert state == OUTSIDE
        assert not is_entry


class TestScanSections:
    def test_reports_entries_with_sections(self, sample_pubspec):
        lines = sample_pubspec.split("\n")
        hits = {lines[i].strip(): s for i, s in scan_sections(lines)}
        assert hits["http: ^1.1.0  # networking"] is DependencySection.DEPENDENCIES
        assert hits["lints: ^2.0.0"] is DependencySection.DEV_DEPENDENCIES
        assert hits["http: 1.0.0"] is DependencySection.DEPENDENCY_OVERRIDES
        assert "sdk: \">=3.0.0 <4.0.0\"" not in hits

    def test_restricted_targets(self, sample_pubspec):
        lines = sample_pubspec.split("\n")
        sections = {s for _, s in scan_sections(lines, [DependencySection.DEV_DEPENDENCIES])}
        assert sections == {DependencySection.DEV_DEPENDENCIES}


# ── rewrite_dependency_version ───────────────────────────────────────────


class TestRewrite:
    def test_preserves_caret_and_comment(self):
        text = _lines("dependencies:", "  bar: ^1.2.3  # keep me", "")
        out = rewrite_dependency_version(text, "bar", "9.9.9")
        assert out == _lines("dependencies:", "  bar: ^9.9.9  # keep me", "")

    def test_without_caret(self):
        text = _lines("dependencies:", "  foo: 1.0.0", "")
        assert rewrite_dependency_version(text, "foo", "2.0.0") == _lines(
            "dependencies:", "  foo: 2.0.0", ""
        )

    def test_quoted_version_keeps_quotes(self):
        text = _lines("dependencies:", "  foo: \"^1.0.0\"", "  bar: '2.0.0' # pinned")
        out = rewrite_dependency_version(text, "foo", "1.5.0")
        out = rewrite_dependency_version(out, "bar", "2.1.0")
        assert out == _lines("dependencies:", "  foo: \"^1.5.0\"", "  bar: '2.1.0' # pinned")

    def test_only_selected_section_changes(self):
        text = _lines(
            "dev_dependencies:",
            "  patrol: ^4.1.1",
            "",
            "dependency_overrides:",
            "  patrol: ^4.0.0",
            "",
        )
        out = rewrite_dependency_version(
            text, "patrol", "4.2.0", [DependencySection.DEPENDENCY_OVERRIDES]
        )
        assert out == _lines(
            "dev_dependencies:",
            "  patrol: ^4.1.1",
            "",
            "dependency_overrides:",
            "  patrol: ^4.2.0",
            "",
        )

    def test_string_section_names_accepted(self):
        text = _lines("dev_dependencies:", "  patrol: ^4.1.1", "dependencies:", "  patrol: ^4.1.1")
        out = rewrite_dependency_version(text, "patrol", "5.0.0", ["dev_dependencies"])
        assert out == _lines(
            "dev_dependencies:", "  patrol: ^5.0.0", "dependencies:", "  patrol: ^4.1.1"
        )

    def test_all_sections_by_default(self, sample_pubspec):
        out = rewrite_dependency_version(sample_pubspec, "http", "2.0.0")
        assert "  http: ^2.0.0  # networking\n" in out
        assert "dependency_overrides:\n  http: 2.0.0\n" in out

    def test_top_level_key_with_same_name_untouched(self):
        text = _lines(
            "dev_dependencies:",
            "  patrol: ^4.1.1",
            "  #custom_lint_builder: ^0.8.1",
            "",
            "patrol:",
            "  # Default Patrol flavor for local smoke runs.",
            "  flavor: dev",
            "  test_directory: patrol_test",
            "  android:",
            "    package_name: io.getment.dev",
            "",
        )
        out = rewrite_dependency_version(text, "patrol", "4.2.0", ["dev_dependencies"])
        assert out.startswith("dev_dependencies:\n  patrol: ^4.2.0\n  #custom_lint_builder: ^0.8.1")
        assert out.split("\n")[4:] == text.split("\n")[4:]

    def test_top_level_key_untouched_for_every_target(self):
        text = _lines("name: demo", "dependencies:", "  foo: 1.0.0", "", "foo: 1.0.0", "")
        for targets in (None, ["dependencies"], ["dev_dependencies"]):
            out = rewrite_dependency_version(text, "foo", "2.0.0", targets)
            assert out.split("\n")[4] == "foo: 1.0.0"

    def test_nested_custom_block_with_package_key_untouched(self):
        text = _lines("dependencies:", "  foo: 1.0.0", "", "foo:", "  nested: value", "")
        out = rewrite_dependency_version(text, "foo", "2.0.0")
        assert out == _lines("dependencies:", "  foo: 2.0.0", "", "foo:", "  nested: value", "")

    def test_absent_package_is_noop(self, sample_pubspec):
        assert rewrite_dependency_version(sample_pubspec, "missing", "9.9.9") == sample_pubspec

    def test_absent_in_requested_section_is_noop(self, sample_pubspec):
        out = rewrite_dependency_version(sample_pubspec, "lints", "3.0.0", ["dependencies"])
        assert out == sample_pubspec

    def test_mapping_declaration_not_rewritten(self):
        text = _lines("dependencies:", "  foo:", "    version: ^1.0.0", "    hosted: https://x")
        assert rewrite_dependency_version(text, "foo", "2.0.0") == text

    @pytest.mark.parametrize(
        "declaration",
        [
            "  foo: {path: ../foo}",
            "  foo: {version: ^1.0.0, hosted: x}",
            "  foo: {git: {url: https://x/foo.git}}  # pinned",
            "  foo: [1.0.0]",
        ],
    )
    def test_flow_style_declaration_not_rewritten(self, declaration):
        text = _lines("dependencies:", declaration, "  bar: ^1.0.0", "")
        assert rewrite_dependency_version(text, "foo", "2.0.0") == text

    def test_prefix_named_package_not_matched(self):
        text = _lines("dependencies:", "  foo_bar: ^1.0.0", "  foo: ^1.0.0")
        out = rewrite_dependency_version(text, "foo", "2.0.0")
        assert out == _lines("dependencies:", "  foo_bar: ^1.0.0", "  foo: ^2.0.0")

    def test_regex_characters_in_name_are_literal(self):
        text = _lines("dependencies:", "  a.b: ^1.0.0", "  axb: ^1.0.0")
        out = rewrite_dependency_version(text, "a.b", "2.0.0")
        assert out == _lines("dependencies:", "  a.b: ^2.0.0", "  axb: ^1.0.0")

    def test_comments_and_blank_lines_inside_section(self):
        text = _lines(
            "dependencies:",
            "  # networking",
            "",
            "  http: ^1.0.0",
        )
        out = rewrite_dependency_version(text, "http", "1.2.0")
        assert out.endswith("  http: ^1.2.0")

    def test_section_closed_by_dedent(self):
        text = _lines("dependencies:", "  a: ^1.0.0", "flutter:", "  http: ^1.0.0")
        assert rewrite_dependency_version(text, "http", "2.0.0") == text

    def test_crlf_preserved(self):
        text = "dependencies:\r\n  foo: ^1.0.0\r\n  bar: ^1.0.0\r\n"
        out = rewrite_dependency_version(text, "foo", "1.1.0")
        assert out == "dependencies:\r\n  foo: ^1.1.0\r\n  bar: ^1.0.0\r\n"

    def test_mixed_line_endings_kept_per_line(self):
        text = "name: x\ndependencies:\r\n  foo: ^1.0.0\n  bar: ^1.0.0\r\n"
        out = rewrite_dependency_version(text, "foo", "1.1.0")
        assert out == "name: x\ndependencies:\r\n  foo: ^1.1.0\n  bar: ^1.0.0\r\n"

    def test_mixed_line_endings_noop_is_byte_identical(self):
        text = "name: x\ndependencies:\r\n  foo: ^1.0.0\n"
        assert rewrite_dependency_version(text, "missing", "1.1.0") == text
        assert rewrite_dependency_version(text, "foo", "1.0.0") == text

    def test_tab_and_four_space_indentation(self):
        text = _lines("dependencies:", "    foo:   ^1.0.0   # four", "\tbar: 1.0.0")
        out = rewrite_dependency_version(text, "foo", "3.0.0")
        out = rewrite_dependency_version(out, "bar", "3.0.0")
        assert out == _lines("dependencies:", "    foo:   ^3.0.0   # four", "\tbar: 3.0.0")

    def test_indented_sections(self):
        text = _lines("workspace:", "  dependencies:", "    foo: 1.0.0", "  other: 1")
        out = rewrite_dependency_version(text, "foo", "2.0.0")
        assert out == _lines("workspace:", "  dependencies:", "    foo: 2.0.0", "  other: 1")

    @pytest.mark.parametrize("targets", [None, ["dependencies"], ["dependency_overrides"]])
    def test_idempotent(self, sample_pubspec, targets):
        once = rewrite_dependency_version(sample_pubspec, "http", "1.2.0", targets)
        twice = rewrite_dependency_version(once, "http", "1.2.0", targets)
        assert once == twice

    def test_same_version_is_byte_identical(self, sample_pubspec):
        assert rewrite_dependency_version(sample_pubspec, "intl", "0.18.1") == sample_pubspec
