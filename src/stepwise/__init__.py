"""
Stepwise - tooling for step numbered git tutorials.

Each tutorial lesson is one commit whose subject reads ``Step <n>: <text>``. This
package rewrites interactive rebase todos so steps stay numbered consistently, and
renders step diffs as annotated markdown for tutorial manuals.
"""

__version__ = "0.1.0"

from .models import (
    DiffFile,
    DiffLine,
    RebaseOperation,
    RebaseTodo,
    StepDescriptor,
    StepwiseError,
)
from .step import parse_descriptor, parse_super_descriptor
from .renumbering import step_limit
from .todo_codec import decode, encode
from .flag_store import FlagStore, FileFlagStore, MemoryFlagStore
from .editor import EditorMethod, TodoEditor
from .git_manager import GitManager
from .diff_extractor import DiffExtractor
from .diff_renderer import parse_diff, render_diff, render_step

__all__ = [
    "DiffFile",
    "DiffLine",
    "RebaseOperation",
    "RebaseTodo",
    "StepDescriptor",
    "StepwiseError",
    "parse_descriptor",
    "parse_super_descriptor",
    "step_limit",
    "decode",
    "encode",
    "FlagStore",
    "FileFlagStore",
    "MemoryFlagStore",
    "EditorMethod",
    "TodoEditor",
    "GitManager",
    "DiffExtractor",
    "parse_diff",
    "render_diff",
    "render_step",
]
