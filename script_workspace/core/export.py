"""Plain-text export of the script sections.

WHY: Narrators and editors want the finished script as one plain text
document with numbered chapters, independent of the audio.

HOW: Each section renders as a "# 第N章 {title}" header line followed by
its trimmed body; sections are separated by one blank line.

RULES:
- Chapter numbers start at 1 and follow section order
- An empty section list raises EmptyScriptError (nothing to export)
- The file is written as UTF-8
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

from script_workspace.config import MSG_EMPTY_EXPORT


class EmptyScriptError(ValueError):
    """Raised when there are no sections to export."""


def render_script_text(sections: Iterable) -> str:
    """Render sections (anything with .title and .body) as chapter text."""
    chapters = [
        "# 第{}章 {}\n{}".format(index, section.title, section.body.strip())
        for index, section in enumerate(sections, start=1)
    ]
    if not chapters:
        raise EmptyScriptError(MSG_EMPTY_EXPORT)
    return "\n\n".join(chapters)


def save_script_text(sections: Iterable, path: Union[str, Path]) -> Path:
    """Render sections and write them to path, returning the path."""
    path = Path(path)
    path.write_text(render_script_text(sections), encoding="utf-8")
    return path
