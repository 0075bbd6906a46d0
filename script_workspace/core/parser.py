"""Split a generated script (heading-delimited markdown) into sections.

WHY: The script generator returns one markdown document, but narration is
synthesized per chapter. Each heading opens a chapter; the lines below it
are that chapter's spoken text. Splitting once into (title, body) pairs
gives the workspace discrete units it can voice independently or in batch.

HOW: Single pass over the lines. A heading line opens a new accumulator;
any other non-empty line is stripped of one list marker and appended to
the open accumulator. Lines before the first heading are dropped. At the
end, bodies are newline-joined and sections with an empty title or body
are filtered out.

RULES:
- Any newline convention is accepted (\\n, \\r\\n, \\r)
- Heading: one or more "#" followed by whitespace
- One bullet marker ("* " / "- ") then one numbered marker ("1. ") is
  stripped per line, never recursively
- A markup-only line keeps its place as an empty body line; a section
  whose body is nothing but markup is dropped
- No implicit preamble section
- Output order follows heading order; duplicate titles are kept
- Pure function: the same input always yields an equal result
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from script_workspace.core.models import ParsedSection

_HEADING_RE = re.compile(r"^#+\s")
_HEADING_PREFIX_RE = re.compile(r"^#+\s*")
# A bare marker with nothing after it counts as markup too.
_BULLET_RE = re.compile(r"^[*-](?:\s+|$)")
_NUMBERED_RE = re.compile(r"^\d+\.(?:\s+|$)")


def sanitize_line(line: str) -> str:
    """Strip one leading bullet or numbered-list marker from a body line."""
    line = _BULLET_RE.sub("", line.strip(), count=1)
    line = _NUMBERED_RE.sub("", line, count=1)
    return line.strip()


def parse_script_markdown(markdown: str) -> List[ParsedSection]:
    """Parse heading-delimited markdown into an ordered list of sections.

    Args:
        markdown: The generated script text.

    Returns:
        ParsedSection objects in heading order. Headings with no usable
        body text produce no entry.
    """
    sections: List[Tuple[str, List[str]]] = []
    current_lines: Optional[List[str]] = None

    for raw_line in markdown.splitlines():
        line = raw_line.rstrip()
        if not line.strip():
            continue

        if _HEADING_RE.match(line):
            title = _HEADING_PREFIX_RE.sub("", line, count=1).strip()
            current_lines = []
            sections.append((title, current_lines))
            continue

        if current_lines is not None:
            current_lines.append(sanitize_line(line))

    result: List[ParsedSection] = []
    for title, lines in sections:
        body = "\n".join(lines).strip()
        if title and body:
            result.append(ParsedSection(title=title, body=body))
    return result
