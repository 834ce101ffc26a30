"""
Rebase todo editor.

Git invokes this module as its sequence editor. Instead of opening an editing program,
the todo file is rewritten by one of the methods below, so that editing, rewording or
reordering a step keeps the numbers of all the steps that follow it consistent.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .commands import ExecCommands
from .flag_store import (
    HOOK_STEP,
    REBASE_BRANCH,
    REBASE_HOOKS_DISABLED,
    REBASE_NEW_STEP,
    REBASE_OLD_STEP,
    FlagStore,
)
from .models import RebaseMethod, RebaseOperation, RebaseTodo
from .renumbering import step_limit
from .step import ROOT, parse_descriptor, parse_super_descriptor
from .todo_codec import decode, encode


logger = logging.getLogger(__name__)


DEFAULT_MANUAL_MODE = "prod"


class EditorMethod(Enum):
    """Ways the todo editor can rewrite a rebase todo."""

    EDIT = "edit"
    SORT = "sort"
    REWORD = "reword"
    RENDER_MANUALS = "render-manuals"
    FORMAT_MANUALS = "format-manuals"

    @classmethod
    def from_token(cls, token: Optional[str]) -> Optional[EditorMethod]:
        """Return the method named by ``token``, or None if it is not one."""
        for method in cls:
            if method.value == token:
                return method
        return None


Handler = Callable[[Sequence[RebaseOperation], Optional[str], Optional[str]], List[RebaseOperation]]


def _is_step_candidate(operation: RebaseOperation) -> bool:
    return not operation.is_passthrough and operation.method.takes_hash


class TodoEditor:
    """Transforms rebase todos. Each transformation reads an immutable snapshot of the
    decoded operations and builds a new list, so inserted operations never shift the
    positions still to be visited."""

    def __init__(self, flag_store: FlagStore, commands: ExecCommands) -> None:
        self.flag_store = flag_store
        self.commands = commands
        self._handlers: Dict[EditorMethod, Handler] = {
            EditorMethod.EDIT: self._edit_step,
            EditorMethod.SORT: self._sort_steps,
            EditorMethod.REWORD: self._reword_step,
            EditorMethod.RENDER_MANUALS: self._render_manuals,
            EditorMethod.FORMAT_MANUALS: self._format_manuals,
        }
        missing = [m.value for m in EditorMethod if m not in self._handlers]
        if missing:
            raise RuntimeError(f"No todo handler registered for: {', '.join(missing)}")

    def transform(
        self,
        method: Optional[EditorMethod],
        todo: RebaseTodo,
        message: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> RebaseTodo:
        """Apply ``method`` to ``todo`` and return the rewritten todo.

        Unknown methods (None) leave the operations as they are. In every case the
        todo ends with an operation that clears the hook step flag.
        """
        snapshot = tuple(todo.operations)
        if method is None:
            operations = list(snapshot)
        else:
            operations = self._handlers[method](snapshot, message, mode)

        operations.append(RebaseOperation.exec(self.commands.remove_flag(HOOK_STEP)))
        return RebaseTodo(operations=operations)

    def edit_file(
        self,
        todo_path: Path,
        method_token: str,
        message: Optional[str] = None,
        mode: Optional[str] = None,
        branch: Optional[str] = None,
    ) -> bool:
        """Rewrite the todo file at ``todo_path`` in place.

        Returns False when the file holds no operations and was left untouched.
        """
        todo_path = Path(todo_path)
        todo = decode(todo_path.read_text(encoding="utf-8"))
        if todo is None:
            logger.info(f"No rebase operations found in {todo_path}; leaving it untouched")
            return False

        # A previous rebase may have been aborted with hooks still disabled
        self.flag_store.remove(REBASE_HOOKS_DISABLED)
        if branch:
            self.flag_store.set(REBASE_BRANCH, branch)

        method = EditorMethod.from_token(method_token)
        if method is None:
            logger.warning(f"Unknown editor method '{method_token}'; todo operations kept as is")

        new_todo = self.transform(method, todo, message=message, mode=mode)
        todo_path.write_text(encode(new_todo), encoding="utf-8")
        logger.info(
            f"Rewrote {todo_path} with '{method_token}': "
            f"{len(todo.commands)} -> {len(new_todo.commands)} operations"
        )
        return True

    # --- Methods ---
    def _edit_step(
        self, snapshot: Sequence[RebaseOperation], message: Optional[str], mode: Optional[str]
    ) -> List[RebaseOperation]:
        first = _first_command_index(snapshot)
        if first is None:
            return list(snapshot)

        head = snapshot[first]
        rest = snapshot[first + 1 :]
        output = list(snapshot[:first])
        output.append(replace(head, method=RebaseMethod.EDIT))

        # Editing the most recent step, nothing to sort afterwards
        if not any(not op.is_passthrough for op in rest):
            output.extend(rest)
            return output

        descriptor = parse_descriptor(head.message)
        number = descriptor.number if descriptor else ROOT
        self.flag_store.set(REBASE_OLD_STEP, number)
        self.flag_store.set(REBASE_NEW_STEP, number)
        logger.debug(f"Editing step {number}")

        output.append(RebaseOperation.exec(self.commands.sort_todo()))
        output.extend(rest)
        return output

    def _sort_steps(
        self, snapshot: Sequence[RebaseOperation], message: Optional[str], mode: Optional[str]
    ) -> List[RebaseOperation]:
        old_step = self.flag_store.get(REBASE_OLD_STEP)
        new_step = self.flag_store.get(REBASE_NEW_STEP)
        self.flag_store.remove(REBASE_OLD_STEP)
        self.flag_store.remove(REBASE_NEW_STEP)

        if old_step == new_step:
            logger.debug(f"Step {old_step} kept its position; no renumbering needed")
            self.flag_store.set(REBASE_HOOKS_DISABLED, "1")
            return list(snapshot) + [RebaseOperation.exec(self.commands.disable_hooks())]

        limit = step_limit(old_step or ROOT, new_step or ROOT)
        logger.info(f"Step moved from {old_step} to {new_step}; renumbering through {limit}")

        output: List[RebaseOperation] = []
        for index, operation in enumerate(snapshot):
            descriptor = parse_descriptor(operation.message) if _is_step_candidate(operation) else None
            if descriptor is None:
                output.append(operation)
                continue

            if descriptor.super_step > limit:
                # Steps past the limit keep their numbers, hooks must not touch them
                output.append(RebaseOperation.exec(self.commands.disable_hooks()))
                output.extend(snapshot[index:])
                break

            if descriptor.is_super:
                output.append(RebaseOperation.exec(self.commands.super_pick(operation.hash)))
            else:
                output.append(operation)
            output.append(RebaseOperation.exec(self.commands.reword(quiet_editor=True)))

        return output

    def _reword_step(
        self, snapshot: Sequence[RebaseOperation], message: Optional[str], mode: Optional[str]
    ) -> List[RebaseOperation]:
        first = _first_command_index(snapshot)
        if first is None:
            return list(snapshot)
        output = list(snapshot[: first + 1])
        output.append(RebaseOperation.exec(self.commands.reword(message)))
        output.extend(snapshot[first + 1 :])
        return output

    def _render_manuals(
        self, snapshot: Sequence[RebaseOperation], message: Optional[str], mode: Optional[str]
    ) -> List[RebaseOperation]:
        return self._manual_operations(snapshot, mode, replace_following_exec=False)

    def _format_manuals(
        self, snapshot: Sequence[RebaseOperation], message: Optional[str], mode: Optional[str]
    ) -> List[RebaseOperation]:
        return self._manual_operations(
            snapshot, mode or DEFAULT_MANUAL_MODE, replace_following_exec=True
        )

    def _manual_operations(
        self,
        snapshot: Sequence[RebaseOperation],
        mode: Optional[str],
        replace_following_exec: bool,
    ) -> List[RebaseOperation]:
        first = _first_command_index(snapshot)
        if first is None:
            return list(snapshot)

        output = list(snapshot[: first + 1])
        output.append(RebaseOperation.exec(self.commands.render_manual(None, mode)))

        cursor = first + 1
        while cursor < len(snapshot):
            operation = snapshot[cursor]
            output.append(operation)
            cursor += 1

            descriptor = (
                parse_super_descriptor(operation.message) if _is_step_candidate(operation) else None
            )
            if descriptor is None:
                continue

            output.append(RebaseOperation.exec(self.commands.render_manual(descriptor.number, mode)))
            if (
                replace_following_exec
                and cursor < len(snapshot)
                and snapshot[cursor].method is RebaseMethod.EXEC
            ):
                cursor += 1

        return output


def _first_command_index(snapshot: Sequence[RebaseOperation]) -> Optional[int]:
    for index, operation in enumerate(snapshot):
        if not operation.is_passthrough:
            return index
    return None
