"""
Git repository management and operations.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from git import Repo, InvalidGitRepositoryError
from git.exc import GitCommandError

from .models import GitRepositoryError


logger = logging.getLogger(__name__)


class GitManager:
    """Manages the Git operations step tutorials are built on."""

    def __init__(self, repo_path: Optional[Path] = None) -> None:
        """Initialize Git manager with optional repository path."""
        self.repo_path = (repo_path or Path.cwd()).resolve()
        self._repo: Optional[Repo] = None

    @property
    def repo(self) -> Repo:
        """Get the Git repository instance."""
        if self._repo is None:
            self._repo = self._discover_repository()
        return self._repo

    def _discover_repository(self) -> Repo:
        """Discover the Git repository from current or specified path."""
        search_path = self.repo_path

        logger.debug(f"Discovering repository in: {search_path}")
        # Walk up the directory tree to find a Git repository
        while search_path != search_path.parent:
            try:
                repo = Repo(search_path)
                logger.debug(f"Found Git repository at: {search_path}")
                return repo
            except InvalidGitRepositoryError:
                search_path = search_path.parent

        # Try current directory as last resort
        try:
            return Repo(self.repo_path)
        except InvalidGitRepositoryError as e:
            raise GitRepositoryError(
                f"No Git repository found at {self.repo_path} or any parent directory"
            ) from e

    @property
    def working_dir(self) -> Path:
        return Path(self.repo.working_dir)

    @property
    def git_dir(self) -> Path:
        return Path(self.repo.git_dir)

    def get_current_branch(self) -> Optional[str]:
        """Return the checked out branch name, or None on a detached HEAD."""
        try:
            if self.repo.head.is_detached:
                return None
            return self.repo.active_branch.name
        except (TypeError, ValueError) as e:
            logger.debug(f"Could not determine current branch: {e}")
            return None

    def is_rebase_in_progress(self) -> bool:
        """Check if a rebase is currently in progress."""
        rebase_dirs = [self.git_dir / "rebase-merge", self.git_dir / "rebase-apply"]
        return any(d.exists() for d in rebase_dirs)

    # --- Log queries ---
    def find_step_commit(self, step: str, ref: str = "HEAD") -> Optional[Tuple[str, str]]:
        """Return (hash, subject) of the most recent commit of the given step, if any."""
        pattern = f"^Step {re.escape(step)}:"
        try:
            output = self.repo.git.log(ref, "-1", f"--grep={pattern}", "--format=%H %s")
        except GitCommandError as e:
            logger.error(f"Error looking up step {step}: {e}")
            raise GitRepositoryError(f"Failed to look up step {step}: {e}")

        line = output.strip()
        if not line:
            logger.debug(f"No commit found for step {step}")
            return None
        commit_hash, _, subject = line.partition(" ")
        return commit_hash, subject

    def get_commit_subject(self, ref: str = "HEAD") -> str:
        """Return the one-line subject for a commit."""
        try:
            return self.repo.git.log("-1", "--format=%s", ref).strip()
        except GitCommandError as e:
            logger.error(f"Error reading subject of {ref}: {e}")
            raise GitRepositoryError(f"Failed to read subject of {ref}: {e}")

    def get_parent_hash(self, ref: str) -> Optional[str]:
        """Return the first parent of a commit, or None for a root commit."""
        try:
            parents = self.repo.commit(ref).parents
        except (GitCommandError, ValueError) as e:
            logger.error(f"Error resolving parents of {ref}: {e}")
            raise GitRepositoryError(f"Failed to resolve parents of {ref}: {e}")
        return parents[0].hexsha if parents else None

    def _unquoted_git(self):
        """Git command runner for a single call that prints non-ASCII paths verbatim."""
        return self.repo.git(c="core.quotePath=false")

    def get_commit_diff(self, commit_hash: str) -> str:
        """Return the unified diff a commit introduces over its first parent."""
        parent = self.get_parent_hash(commit_hash)
        try:
            if parent is None:
                # Root commit: everything it contains is an addition
                return self._unquoted_git().show("--no-color", "--format=", "--patch", commit_hash)
            return self._unquoted_git().diff("--no-color", parent, commit_hash)
        except GitCommandError as e:
            logger.error(f"Error computing diff of {commit_hash}: {e}")
            raise GitRepositoryError(f"Failed to compute diff of {commit_hash}: {e}")

    # --- History rewriting primitives ---
    def start_interactive_rebase(self, base: Optional[str], sequence_editor: str) -> None:
        """Start `git rebase -i` with the given sequence editor.

        A base of None rebases from the root commit.
        """
        args = ["-i", base if base else "--root", "--keep-empty"]
        try:
            with self.repo.git.custom_environment(GIT_SEQUENCE_EDITOR=sequence_editor):
                self.repo.git.rebase(*args)
            logger.info(f"Started interactive rebase from {base or 'root'}")
        except GitCommandError as e:
            logger.error(f"Interactive rebase failed: {e}")
            raise GitRepositoryError(f"Interactive rebase failed: {e}")

    def amend_message(self, message: str) -> None:
        """Replace the message of HEAD without opening an editor."""
        try:
            with self.repo.git.custom_environment(GIT_EDITOR="true"):
                self.repo.git.commit("--amend", "--allow-empty", "-m", message)
            logger.info(f"Amended HEAD message: {message.splitlines()[0] if message else ''}")
        except GitCommandError as e:
            logger.error(f"Failed to amend HEAD message: {e}")
            raise GitRepositoryError(f"Failed to amend HEAD message: {e}")

    def amend_paths(self, paths: List[Path]) -> None:
        """Stage the given paths and fold them into HEAD, keeping its message."""
        try:
            for p in paths:
                self.repo.git.add("--", str(p))
            with self.repo.git.custom_environment(GIT_EDITOR="true"):
                self.repo.git.commit("--amend", "--allow-empty", "--no-edit")
            logger.info(f"Amended HEAD with {[str(p) for p in paths]}")
        except GitCommandError as e:
            logger.error(f"Failed to amend HEAD with {paths}: {e}")
            raise GitRepositoryError(f"Failed to amend HEAD: {e}")

    def cherry_pick(self, commit_hash: str) -> None:
        try:
            self.repo.git.cherry_pick("--allow-empty", "--keep-redundant-commits", commit_hash)
            logger.info(f"Cherry-picked {commit_hash[:8]}")
        except GitCommandError as e:
            logger.error(f"Failed to cherry-pick {commit_hash}: {e}")
            raise GitRepositoryError(f"Failed to cherry-pick {commit_hash}: {e}")

    def format_patch(self, commit_hash: str) -> str:
        """Return a commit as a mailbox patch, keeping its author, date and message."""
        try:
            return self._unquoted_git().format_patch("-1", "--binary", "--stdout", commit_hash)
        except GitCommandError as e:
            logger.error(f"Failed to format patch of {commit_hash}: {e}")
            raise GitRepositoryError(f"Failed to format patch of {commit_hash}: {e}")

    def apply_patch(self, patch: str) -> None:
        """Commit a mailbox patch (see format_patch) on top of HEAD with `git am`."""
        patch_path = self.git_dir / "stepwise" / "pick.patch"
        try:
            patch_path.parent.mkdir(parents=True, exist_ok=True)
            patch_path.write_text(patch + "\n", encoding="utf-8")
            self.repo.git.am("--keep-cr", str(patch_path))
            logger.info("Applied patch on top of HEAD")
        except GitCommandError as e:
            logger.error(f"Failed to apply patch: {e}")
            raise GitRepositoryError(f"Failed to apply patch: {e}")
        finally:
            patch_path.unlink(missing_ok=True)
