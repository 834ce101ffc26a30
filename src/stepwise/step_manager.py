"""
Step level operations: starting edit/reword rebases and the helpers their exec
operations call back into.
"""

from __future__ import annotations

import logging
import re
import shlex
from typing import Optional

from .config import StepwiseConfig
from .flag_store import HOOK_STEP, REBASE_NEW_STEP, REBASE_OLD_STEP, FlagStore
from .git_manager import GitManager
from .models import StepwiseError
from .step import format_subject, next_step, parse_descriptor, split_step_number


logger = logging.getLogger(__name__)


_MANUAL_FILE = re.compile(r"step(\d+)\.(md|tmpl)")


class StepManager:
    """Edits and rewords steps of a tutorial repository."""

    def __init__(self, git_manager: GitManager, flag_store: FlagStore, config: StepwiseConfig) -> None:
        self.gm = git_manager
        self.flag_store = flag_store
        self.config = config

    def _rebase_base(self, step: str) -> Optional[str]:
        """Return the parent of the step's commit (None for the root commit)."""
        split_step_number(step)
        if self.gm.is_rebase_in_progress():
            raise StepwiseError("A rebase is already in progress; finish or abort it first")
        found = self.gm.find_step_commit(step)
        if found is None:
            raise StepwiseError(f"Step {step} not found")
        commit_hash, subject = found
        logger.debug(f"Step {step} is {commit_hash[:8]} '{subject}'")
        return self.gm.get_parent_hash(commit_hash)

    def edit_step(self, step: str) -> None:
        """Stop the rebase at the given step so it can be amended."""
        base = self._rebase_base(step)
        self.gm.start_interactive_rebase(base, f"{self.config.program} editor edit")
        logger.info(f"Editing step {step}")

    def reword_step(self, step: str, message: Optional[str] = None) -> None:
        """Replace the text of a step's subject, keeping its number."""
        base = self._rebase_base(step)
        editor = f"{self.config.program} editor reword"
        if message:
            editor += f" --message {shlex.quote(message)}"
        self.gm.start_interactive_rebase(base, editor)
        logger.info(f"Reworded step {step}")

    def reword_head(self, message: Optional[str] = None) -> Optional[str]:
        """Renumber HEAD according to its parent and optionally replace its text.

        Returns the new step number, or None when HEAD is not a step commit.
        """
        subject = self.gm.get_commit_subject("HEAD")
        descriptor = parse_descriptor(subject)
        if descriptor is None:
            logger.info(f"HEAD is not a step commit: '{subject}'")
            return None

        parent = self.gm.get_parent_hash("HEAD")
        previous = parse_descriptor(self.gm.get_commit_subject(parent)) if parent else None
        number = next_step(previous, super_step=descriptor.is_super)

        new_subject = format_subject(number, message or descriptor.text)
        if new_subject != subject:
            self.gm.amend_message(new_subject)
        self.flag_store.set(HOOK_STEP, number)
        logger.info(f"Step {descriptor.number} is now step {number}")
        return number

    def record_edited_step(self) -> Optional[str]:
        """Store HEAD's step number as the new step when an edit changed it.

        Runs when the rebase continues after an edit stop, before the rest of the todo is
        sorted. A new step set explicitly (e.g. with `flags set`) is kept while HEAD still
        carries the old number.
        """
        old_step = self.flag_store.get(REBASE_OLD_STEP)
        if old_step is None:
            return None
        descriptor = parse_descriptor(self.gm.get_commit_subject("HEAD"))
        if descriptor is None or descriptor.number == old_step:
            return None
        self.flag_store.set(REBASE_NEW_STEP, descriptor.number)
        logger.info(f"Step {old_step} was edited into step {descriptor.number}")
        return descriptor.number

    def super_pick(self, commit_hash: str) -> None:
        """Apply a super step commit on top of HEAD under the super step number it gets
        there. References to its manual files (stepN.tmpl, stepN.md) are shifted to that
        number; a commit that needs no shift is cherry-picked as is.
        """
        descriptor = parse_descriptor(self.gm.get_commit_subject(commit_hash))
        if descriptor is None or not descriptor.is_super:
            self.gm.cherry_pick(commit_hash)
            return

        previous = parse_descriptor(self.gm.get_commit_subject("HEAD"))
        shift = int(next_step(previous, super_step=True)) - descriptor.super_step
        if shift == 0:
            self.gm.cherry_pick(commit_hash)
            return

        patch = self.gm.format_patch(commit_hash)
        shifted = _MANUAL_FILE.sub(lambda m: f"step{int(m.group(1)) + shift}.{m.group(2)}", patch)
        if shifted == patch:
            self.gm.cherry_pick(commit_hash)
            return

        logger.info(f"Super step {descriptor.number} moves by {shift}; renaming its manual files")
        self.gm.apply_patch(shifted)
