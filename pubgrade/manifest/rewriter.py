"""Text-preserving rewrite of a single dependency version inside pubspec.yaml.

The manifest is scanned line by line instead of being re-serialized, so
comments, quoting and key order survive untouched.  Which lines belong to a
dependency section is decided by a two-state machine:

* ``Outside`` — not inside a tracked section (initial state);
* ``Inside(section, indent)`` — below a tracked section header whose key
  sits at *indent* columns.

A header line switches to ``Inside`` when its section is targeted and to
``Outside`` otherwise.  Blank and comment-only lines never change the
state.  Any other line indented no deeper than the header closes the
section.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from pubgrade.manifest.models import SECTION_ORDER, DependencySection

_SECTION_HEADER_RE = re.compile(
    r"^([ \t]*)(dependencies|dev_dependencies|dependency_overrides)\s*:\s*(#.*)?$"
)
_BLANK_OR_COMMENT_RE = re.compile(r"^\s*(#.*)?$")
_INDENT_RE = re.compile(r"^[ \t]*")
_LINE_SPLIT_RE = re.compile(r"(\r?\n)")


@dataclass(frozen=True)
class Outside:
    """Scanner is not inside a tracked dependency section."""


@dataclass(frozen=True)
class Inside:
    """Scanner is inside *section*, whose header is indented by *indent*."""

    section: DependencySection
    indent: int


SectionState = Outside | Inside

OUTSIDE = Outside()


def next_state(
    state: SectionState,
    line: str,
    targets: frozenset[DependencySection],
) -> tuple[SectionState, bool]:
    """Advance the section state machine by one line.

    Returns ``(new_state, is_entry)`` where *is_entry* is true when *line*
    is a candidate dependency entry of a targeted section.
    """
    header = _SECTION_HEADER_RE.match(line)
    if header:
        section = DependencySection(header.group(2))
        if section in targets:
            return Inside(section, len(header.group(1))), False
        return OUTSIDE, False

    if isinstance(state, Outside):
        return state, False

    if _BLANK_OR_COMMENT_RE.match(line):
        return state, False

    indent = len(_INDENT_RE.match(line).group(0))  # type: ignore[union-attr]
    if indent <= state.indent:
        return OUTSIDE, False

    return state, True


def scan_sections(
    lines: Iterable[str],
    target_sections: Iterable[DependencySection] | None = None,
) -> Iterator[tuple[int, DependencySection]]:
    """Yield ``(line_index, section)`` for every entry line of a targeted section."""
    targets = _resolve_targets(target_sections)
    state: SectionState = OUTSIDE
    for index, line in enumerate(lines):
        state, is_entry = next_state(state, line, targets)
        if is_entry:
            yield index, state.section  # type: ignore[union-attr]


def rewrite_dependency_version(
    content: str,
    package_name: str,
    new_version: str,
    target_sections: Iterable[DependencySection | str] | None = None,
) -> str:
    """Return *content* with *package_name* set to *new_version*.

    Only inline declarations (``name: ^1.2.3``) inside the targeted sections
    are rewritten; all sections are targeted when *target_sections* is
    ``None``.  The caret, any quotes, trailing spacing and inline comment
    are preserved, as is each line's own terminator.  Flow mappings
    (``name: {path: ../x}``) are not version declarations and never match.
    When nothing matches, *content* is returned unchanged.
    """
    # Even slots hold line text, odd slots the terminator that followed it.
    parts = _LINE_SPLIT_RE.split(content)
    lines = parts[0::2]
    endings = parts[1::2]
    entry_re = _entry_pattern(package_name)

    sections = None
    if target_sections is not None:
        sections = [DependencySection(s) for s in target_sections]

    for index, _section in scan_sections(lines, sections):
        m = entry_re.match(lines[index])
        if m is None:
            continue
        quote = m.group("quote")
        lines[index] = (
            f"{m.group('prefix')}{quote}{m.group('caret')}{new_version}{quote}"
            f"{m.group('spacing')}{m.group('comment') or ''}"
        )

    return "".join(line + ending for line, ending in zip(lines, [*endings, ""]))


def _resolve_targets(
    target_sections: Iterable[DependencySection] | None,
) -> frozenset[DependencySection]:
    if target_sections is None:
        return frozenset(SECTION_ORDER)
    return frozenset(target_sections)


def _entry_pattern(package_name: str) -> re.Pattern[str]:
    """Match ``<indent><name>: ["']^<version>["'] <spacing># comment``."""
    return re.compile(
        r"^(?P<prefix>[ \t]*" + re.escape(package_name) + r"[ \t]*:[ \t]*)"
        r"(?P<quote>[\"']?)"
        r"(?P<caret>\^?)"
        r"(?P<version>[^\s#\"'{\[][^#\r\n]*?)"
        r"(?P=quote)"
        r"(?P<spacing>[ \t]*)"
        r"(?P<comment>#.*)?$"
    )
