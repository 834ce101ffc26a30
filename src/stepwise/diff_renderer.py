"""
Renders step diffs as annotated markdown. For example, a step whose commit changes
``/path/to/file.js`` renders as:

    #### Step 1.1: Add foo

    ##### Changed /path/to/file.js
    ```diff
    @@ -1,3 +1,3 @@
    +┊ ┊1┊foo
    -┊1┊ ┊bar
     ┊2┊2┊baz🚫⮐
    ```
"""

from __future__ import annotations

import logging
from typing import List, Optional

from unidiff import PatchSet, PatchedFile
from unidiff.constants import LINE_TYPE_ADDED, LINE_TYPE_NO_NEWLINE, LINE_TYPE_REMOVED
from unidiff.errors import UnidiffParseError
from unidiff.patch import Hunk

from .diff_extractor import DiffExtractor
from .models import NULL_PATH, DiffFile, DiffLine, DiffStatus, LineKind


logger = logging.getLogger(__name__)


GUTTER = "┊"
NO_NEWLINE_CONTENT = " No newline at end of file"
NO_NEWLINE_GLYPH = "🚫⮐"
_EOF_PLACEHOLDER = "\\EOF"

_TITLES = {
    DiffStatus.CHANGED: "Changed",
    DiffStatus.DELETED: "Deleted",
    DiffStatus.ADDED: "Added",
}


def _strip_prefix(name: str) -> str:
    if name.startswith(("a/", "b/")):
        return name[2:]
    return name


def _hunk_header(hunk: Hunk) -> str:
    """Rebuild the hunk header the way git prints it (a length of 1 is omitted)."""

    def _range(start: int, length: int) -> str:
        return str(start) if length == 1 else f"{start},{length}"

    source = _range(hunk.source_start, hunk.source_length)
    target = _range(hunk.target_start, hunk.target_length)
    header = f"@@ -{source} +{target} @@"
    if hunk.section_header:
        header += f" {hunk.section_header}"
    return header


def _to_diff_file(patched_file: PatchedFile) -> DiffFile:
    diff_file = DiffFile(
        source_path=NULL_PATH if patched_file.is_added_file else _strip_prefix(patched_file.source_file),
        destination_path=NULL_PATH if patched_file.is_removed_file else _strip_prefix(patched_file.target_file),
    )
    for hunk in patched_file:
        diff_file.lines.append(DiffLine(LineKind.CHUNK_HEADER, _hunk_header(hunk)))
        for line in hunk:
            if line.line_type == LINE_TYPE_NO_NEWLINE:
                diff_file.lines.append(DiffLine(LineKind.CONTEXT, NO_NEWLINE_CONTENT))
                continue
            if line.line_type == LINE_TYPE_ADDED:
                kind = LineKind.ADD
            elif line.line_type == LINE_TYPE_REMOVED:
                kind = LineKind.DELETE
            else:
                kind = LineKind.CONTEXT
            content = line.value[:-1] if line.value.endswith("\n") else line.value
            diff_file.lines.append(
                DiffLine(kind, content, old_line_number=line.source_line_no, new_line_number=line.target_line_no)
            )
    return diff_file


def parse_diff(text: str) -> List[DiffFile]:
    """Parse unified diff text into DiffFile records.

    Malformed diffs are logged and yield no files.
    """
    try:
        patch_set = PatchSet(text)
    except UnidiffParseError as e:
        logger.warning(f"Could not parse diff: {e}")
        return []
    return [_to_diff_file(patched_file) for patched_file in patch_set]


def _is_no_newline_marker(line: DiffLine) -> bool:
    return (
        line.kind is LineKind.CONTEXT
        and line.content == NO_NEWLINE_CONTENT
        and line.old_line_number is None
        and line.new_line_number is None
    )


def render_file_lines(diff_file: DiffFile) -> Optional[str]:
    """Render the lines of one file with two line-number gutters.

    Returns None when the file has nothing to show.
    """
    numbered = [
        line
        for line in diff_file.lines
        if line.old_line_number is not None or line.new_line_number is not None
    ]
    if not numbered:
        return None

    last = numbered[-1]
    pad = len(str(max(last.old_line_number or 0, last.new_line_number or 0)))

    rendered = []
    for line in diff_file.lines:
        if line.kind is LineKind.CHUNK_HEADER:
            rendered.append(line.content)
            continue
        if _is_no_newline_marker(line):
            rendered.append(_EOF_PLACEHOLDER)
            continue

        if line.kind is LineKind.ADD:
            sign, deleted, added = "+", "", str(line.new_line_number)
        elif line.kind is LineKind.DELETE:
            sign, deleted, added = "-", str(line.old_line_number), ""
        else:
            sign, deleted, added = " ", str(line.old_line_number), str(line.new_line_number)

        rendered.append(
            f"{sign}{GUTTER}{deleted.rjust(pad)}{GUTTER}{added.rjust(pad)}{GUTTER}{line.content}"
        )

    # Fold the placeholder into the line it belongs to
    return "\n".join(rendered).replace("\n" + _EOF_PLACEHOLDER, NO_NEWLINE_GLYPH)


def file_title(diff_file: DiffFile) -> str:
    status = diff_file.status
    path = diff_file.destination_path if status is DiffStatus.ADDED else diff_file.source_path
    return f"##### {_TITLES[status]} {path}"


def render_diff(text: str) -> str:
    """Render a unified diff as one fenced diff block per file."""
    blocks = []
    for diff_file in parse_diff(text):
        body = render_file_lines(diff_file)
        if body is None:
            continue
        blocks.append(f"{file_title(diff_file)}\n```diff\n{body}\n```")
    return "\n\n".join(blocks)


def render_step(extractor: DiffExtractor, step: str) -> str:
    """Render the diff of a step under its commit subject.

    A missing step renders an inline error instead of raising, so a broken reference
    never aborts manual rendering in the middle of a rebase.
    """
    step_diff = extractor.fetch_step_diff(step)
    if step_diff is None:
        return f"STEP {step} NOT FOUND!"
    return f"#### {step_diff.subject}\n\n{render_diff(step_diff.diff)}"
