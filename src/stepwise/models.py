"""
Data models for the step tutorial tool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class StepDescriptor:
    """Step number and title parsed from a commit subject."""

    super_step: int
    sub_step: Optional[int] = None
    text: str = ""

    @property
    def number(self) -> str:
        """Return the step number as written in subjects, e.g. '3' or '3.2'."""
        if self.sub_step is None:
            return str(self.super_step)
        return f"{self.super_step}.{self.sub_step}"

    @property
    def is_super(self) -> bool:
        return self.sub_step is None


class RebaseMethod(Enum):
    """Operation keywords understood by git's interactive rebase."""

    PICK = "pick"
    EDIT = "edit"
    REWORD = "reword"
    SQUASH = "squash"
    FIXUP = "fixup"
    DROP = "drop"
    EXEC = "exec"
    BREAK = "break"
    LABEL = "label"
    RESET = "reset"
    MERGE = "merge"

    @property
    def takes_hash(self) -> bool:
        return self in _HASH_METHODS


_HASH_METHODS = {
    RebaseMethod.PICK,
    RebaseMethod.EDIT,
    RebaseMethod.REWORD,
    RebaseMethod.SQUASH,
    RebaseMethod.FIXUP,
    RebaseMethod.DROP,
}


@dataclass
class RebaseOperation:
    """A single line of a rebase todo file.

    Lines that are not operations (comments, blank lines) are kept as passthrough
    entries: ``method`` is None and ``raw`` holds the line verbatim.
    """

    method: Optional[RebaseMethod]
    hash: Optional[str] = None
    message: str = ""
    raw: Optional[str] = None

    @classmethod
    def exec(cls, command: str) -> RebaseOperation:
        return cls(method=RebaseMethod.EXEC, message=command)

    @classmethod
    def passthrough(cls, line: str) -> RebaseOperation:
        return cls(method=None, raw=line)

    @property
    def is_passthrough(self) -> bool:
        return self.method is None


@dataclass
class RebaseTodo:
    """Ordered rebase todo entries; order is the execution order of the rebase."""

    operations: List[RebaseOperation] = field(default_factory=list)

    @property
    def commands(self) -> List[RebaseOperation]:
        """Operations without passthrough lines."""
        return [op for op in self.operations if not op.is_passthrough]


class DiffStatus(Enum):
    """How a file changed between two revisions."""

    ADDED = "added"
    DELETED = "deleted"
    CHANGED = "changed"


class LineKind(Enum):
    ADD = "add"
    DELETE = "delete"
    CONTEXT = "context"
    CHUNK_HEADER = "chunk"


@dataclass
class DiffLine:
    """One line of a parsed diff hunk."""

    kind: LineKind
    content: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None


@dataclass
class DiffFile:
    """Changes to a single file within a unified diff."""

    source_path: str
    destination_path: str
    lines: List[DiffLine] = field(default_factory=list)

    @property
    def status(self) -> DiffStatus:
        if self.destination_path == NULL_PATH:
            return DiffStatus.DELETED
        if self.source_path == NULL_PATH:
            return DiffStatus.ADDED
        return DiffStatus.CHANGED


NULL_PATH = "/dev/null"


@dataclass
class StepDiff:
    """A step commit together with its diff against its parent."""

    step: str
    hash: str
    subject: str
    diff: str


class StepwiseError(Exception):
    """Base exception for step tutorial operations."""

    pass


class GitRepositoryError(StepwiseError):
    """Exception raised for Git repository related errors."""

    pass


class InvalidArgumentError(StepwiseError):
    """Exception raised for malformed step numbers or modes before anything is changed."""

    pass


class ManualError(StepwiseError):
    """Exception raised while rendering manuals."""

    pass
