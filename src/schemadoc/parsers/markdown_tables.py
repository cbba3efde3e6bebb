"""Line-level helpers for tbls-style Markdown: sections and pipe tables."""

import re
from dataclasses import dataclass, field
from collections.abc import Callable


SECTION_HEADING = re.compile(r"^##\s+")
SEPARATOR_ROW = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$")
HORIZONTAL_RULE = re.compile(r"^---\s*$", re.MULTILINE)
MARKDOWN_LINK = re.compile(r"^\[(.+?)\]\(.*\)$")


@dataclass
class PipeTable:
    """A located pipe table: header cells plus the data rows under it."""

    header: list[str]
    rows: list[list[str]] = field(default_factory=list)

    def column_index(self, *labels: str) -> int | None:
        """Index of the first header cell equal to any label (case-insensitive)."""
        wanted = {label.lower() for label in labels}
        for i, cell in enumerate(self.header):
            if cell.lower() in wanted:
                return i
        return None


def split_lines(content: str) -> list[str]:
    return content.replace("\r\n", "\n").split("\n")


def split_row(line: str) -> list[str]:
    """Split ``| a | b |`` into ``["a", "b"]``; outer pipes are optional."""
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in stripped.split("|")]


def strip_link(text: str) -> str:
    """``[users](users.md)`` -> ``users``."""
    match = MARKDOWN_LINK.match(text)
    return match.group(1) if match else text


def extract_section(content: str, heading: str) -> str | None:
    """Return the lines from ``heading`` up to the next ``##`` heading or ``---`` rule.

    The heading must match a whole line exactly (after trimming).
    """
    lines = split_lines(content)
    try:
        start = next(i for i, line in enumerate(lines) if line.strip() == heading)
    except StopIteration:
        return None

    end = len(lines)
    for i in range(start + 1, len(lines)):
        line = lines[i]
        if SECTION_HEADING.match(line) and line.strip() != heading:
            end = i
            break
        if line.strip() == "---":
            end = i
            break

    return "\n".join(lines[start:end])


def find_pipe_table(content: str, is_header: Callable[[str], bool]) -> PipeTable | None:
    """Locate a pipe table by its header row.

    Finds the first line satisfying ``is_header``, then the dash separator row
    after it, then collects pipe rows until a blank line or a heading.
    Returns None when no header or no separator exists.
    """
    lines = split_lines(content)

    header_index = next((i for i, line in enumerate(lines) if is_header(line)), None)
    if header_index is None:
        return None

    separator_index = next(
        (i for i in range(header_index + 1, len(lines)) if SEPARATOR_ROW.match(lines[i])),
        None,
    )
    if separator_index is None:
        return None

    table = PipeTable(header=split_row(lines[header_index]))
    for line in lines[separator_index + 1 :]:
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or stripped == "---":
            break
        if "|" not in stripped:
            continue
        table.rows.append(split_row(stripped))

    return table


def header_has(*labels: str) -> Callable[[str], bool]:
    """Build a header predicate: every label appears somewhere in the line."""
    return lambda line: "|" in line and all(label in line for label in labels)
