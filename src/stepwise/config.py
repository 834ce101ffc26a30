"""
Runtime configuration read from the environment.
"""

from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path


DEFAULT_MANUALS_DIR = ".stepwise/manuals"


def default_program() -> str:
    """Shell prefix that re-invokes this tool with the current interpreter."""
    return f"{shlex.quote(sys.executable)} -m stepwise"


def default_log_path() -> Path:
    """Determine default log file path (~/.stepwise/stepwise.log)."""
    env_path = os.environ.get("STEPWISE_LOG")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".stepwise" / "stepwise.log"


@dataclass
class StepwiseConfig:
    """Settings shared by the CLI, the todo editor and the manual renderer."""

    program: str = field(default_factory=default_program)
    log_path: Path = field(default_factory=default_log_path)
    manuals_dir: Path = Path(DEFAULT_MANUALS_DIR)

    @classmethod
    def from_env(cls) -> StepwiseConfig:
        return cls(
            program=os.environ.get("STEPWISE_BIN") or default_program(),
            log_path=default_log_path(),
            manuals_dir=Path(os.environ.get("STEPWISE_MANUALS_DIR") or DEFAULT_MANUALS_DIR),
        )
