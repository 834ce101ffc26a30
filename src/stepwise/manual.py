"""
Manual rendering: step manual templates become markdown views with their diff_step
helpers expanded.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .config import StepwiseConfig
from .diff_extractor import DiffExtractor
from .diff_renderer import render_step
from .git_manager import GitManager
from .models import InvalidArgumentError, ManualError
from .step import split_step_number


logger = logging.getLogger(__name__)


MODES = ("prod", "dev")
ROOT_TEMPLATE = "root.tmpl"
ROOT_VIEW = "README.md"

_DIFF_STEP_HELPER = re.compile(r"\{\{\{?\s*diff_step\s+\"?(\d+(?:\.\d+)?)\"?\s*\}?\}\}")


class ManualRenderer:
    """Renders the root manual and step manuals of a tutorial repository."""

    def __init__(
        self,
        git_manager: GitManager,
        config: StepwiseConfig,
        extractor: Optional[DiffExtractor] = None,
    ) -> None:
        self.gm = git_manager
        self.config = config
        self.extractor = extractor or DiffExtractor(git_manager)

    @property
    def manuals_dir(self) -> Path:
        return self.gm.working_dir / self.config.manuals_dir

    def template_path(self, step: Optional[str]) -> Path:
        name = ROOT_TEMPLATE if step is None else f"step{step}.tmpl"
        return self.manuals_dir / "templates" / name

    def view_path(self, step: Optional[str]) -> Path:
        if step is None:
            return self.gm.working_dir / ROOT_VIEW
        return self.manuals_dir / "views" / f"step{step}.md"

    def expand_helpers(self, template: str) -> str:
        return _DIFF_STEP_HELPER.sub(lambda m: render_step(self.extractor, m.group(1)), template)

    def render(self, step: Optional[str] = None, mode: str = "prod") -> Optional[Path]:
        """Render the manual of ``step`` (the root manual when None).

        Returns the written view path, or None when the step has no template.
        """
        if step is not None:
            split_step_number(step)
        if mode not in MODES:
            raise InvalidArgumentError(f"Manual mode must be one of {', '.join(MODES)}, got {mode!r}")

        template_path = self.template_path(step)
        if not template_path.is_file():
            logger.warning(f"No manual template at {template_path}; skipping")
            return None

        try:
            template = template_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManualError(f"Failed to read manual template {template_path}: {e}") from e

        view = self.expand_helpers(template) if mode == "prod" else template
        view_path = self.view_path(step)
        view_path.parent.mkdir(parents=True, exist_ok=True)
        view_path.write_text(view, encoding="utf-8")
        logger.info(f"Rendered {view_path} ({mode})")
        return view_path

    def render_and_amend(self, step: Optional[str] = None, mode: str = "prod") -> Optional[Path]:
        """Render a manual and fold it into HEAD."""
        view_path = self.render(step, mode)
        if view_path is not None:
            self.gm.amend_paths([view_path])
        return view_path

    def render_all(self) -> None:
        """Re-render every manual since the beginning of history via an interactive rebase."""
        editor = f"{self.config.program} editor render-manuals"
        self.gm.start_interactive_rebase(None, editor)
