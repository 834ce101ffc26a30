"""
Locating a step's commit and the diff it introduces.
"""

from __future__ import annotations

import logging
from typing import Optional

from .git_manager import GitManager
from .models import StepDiff


logger = logging.getLogger(__name__)


class DiffExtractor:
    """Fetches step diffs through a GitManager."""

    def __init__(self, git_manager: GitManager) -> None:
        self.gm = git_manager

    def fetch_step_diff(self, step: str) -> Optional[StepDiff]:
        """Return the most recent commit of ``step`` with its diff, or None if the step
        does not exist. Git failures propagate as GitRepositoryError."""
        found = self.gm.find_step_commit(step)
        if found is None:
            logger.warning(f"Step {step} not found")
            return None

        commit_hash, subject = found
        diff = self.gm.get_commit_diff(commit_hash)
        logger.debug(f"Fetched diff of step {step} ({commit_hash[:8]}), {len(diff)} chars")
        return StepDiff(step=step, hash=commit_hash, subject=subject, diff=diff)
