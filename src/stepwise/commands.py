"""
Shell commands placed in ``exec`` operations of a rebase todo.
"""

from __future__ import annotations

import shlex
from typing import Optional

from .flag_store import REBASE_HOOKS_DISABLED


class ExecCommands:
    """Builds the command lines that re-enter this tool while a rebase runs."""

    def __init__(self, program: str) -> None:
        self.program = program

    def sort_todo(self) -> str:
        editor = shlex.quote(f"{self.program} editor sort")
        return f"GIT_SEQUENCE_EDITOR={editor} git rebase --edit-todo"

    def super_pick(self, commit_hash: str) -> str:
        return f"{self.program} rebase super-pick {commit_hash}"

    def reword(self, message: Optional[str] = None, quiet_editor: bool = False) -> str:
        command = f"{self.program} rebase reword"
        if message:
            command += f" --message {shlex.quote(message)}"
        if quiet_editor:
            command = f"GIT_EDITOR=true {command}"
        return command

    def set_flag(self, key: str, value: str) -> str:
        return f"{self.program} flags set {key} {shlex.quote(value)}"

    def remove_flag(self, key: str) -> str:
        return f"{self.program} flags remove {key}"

    def disable_hooks(self) -> str:
        return self.set_flag(REBASE_HOOKS_DISABLED, "1")

    def render_manual(self, step: Optional[str] = None, mode: Optional[str] = None) -> str:
        """Render the manual of ``step`` (root manual when None) and amend HEAD."""
        target = "--root" if step is None else step
        command = f"{self.program} manual render {target}"
        if mode:
            command += f" --mode {mode}"
        return command + " --amend"
