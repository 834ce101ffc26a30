"""
Tests for manual rendering.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from stepwise.config import StepwiseConfig
from stepwise.manual import ManualRenderer
from stepwise.models import InvalidArgumentError, StepDiff


DIFF = """\
diff --git a/file.txt b/file.txt
index 1234567..89abcde 100644
--- a/file.txt
+++ b/file.txt
@@ -1 +1 @@
-old
+new
"""


@pytest.fixture
def gm(tmp_path):
    return Mock(working_dir=tmp_path)


@pytest.fixture
def extractor():
    extractor = Mock()
    extractor.fetch_step_diff.side_effect = lambda step: (
        StepDiff(step=step, hash="abcdef1234", subject=f"Step {step}: Something", diff=DIFF)
        if step == "1.1"
        else None
    )
    return extractor


@pytest.fixture
def renderer(gm, extractor, tmp_path):
    config = StepwiseConfig(program="stepwise", log_path=tmp_path / "stepwise.log")
    return ManualRenderer(gm, config, extractor)


def write_template(renderer, step, text):
    path = renderer.template_path(step)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestPaths:
    """Test template and view locations."""

    def test_step_paths(self, renderer, tmp_path):
        assert renderer.template_path("2") == tmp_path / ".stepwise/manuals/templates/step2.tmpl"
        assert renderer.view_path("2") == tmp_path / ".stepwise/manuals/views/step2.md"

    def test_root_paths(self, renderer, tmp_path):
        assert renderer.template_path(None) == tmp_path / ".stepwise/manuals/templates/root.tmpl"
        assert renderer.view_path(None) == tmp_path / "README.md"


class TestRender:
    """Test rendering manuals."""

    def test_prod_expands_helpers(self, renderer):
        write_template(renderer, "1", "# Intro\n\n{{{diff_step 1.1}}}\n\nThe end\n")

        view_path = renderer.render("1")

        view = view_path.read_text(encoding="utf-8")
        assert view.startswith("# Intro\n\n#### Step 1.1: Something\n\n##### Changed file.txt\n")
        assert "-┊1┊ ┊old" in view
        assert view.endswith("```\n\nThe end\n")

    def test_missing_step_renders_inline_error(self, renderer):
        write_template(renderer, "1", "{{diff_step 3}}\n")

        view_path = renderer.render("1")

        assert view_path.read_text(encoding="utf-8") == "STEP 3 NOT FOUND!\n"

    def test_dev_keeps_template(self, renderer, extractor):
        write_template(renderer, None, "{{{diff_step 1.1}}}\n")

        view_path = renderer.render(None, mode="dev")

        assert view_path.name == "README.md"
        assert view_path.read_text(encoding="utf-8") == "{{{diff_step 1.1}}}\n"
        extractor.fetch_step_diff.assert_not_called()

    def test_missing_template(self, renderer, tmp_path):
        assert renderer.render("4") is None
        assert not (tmp_path / ".stepwise/manuals/views").exists()

    def test_invalid_step(self, renderer):
        with pytest.raises(InvalidArgumentError):
            renderer.render("four")

    def test_invalid_mode(self, renderer):
        with pytest.raises(InvalidArgumentError):
            renderer.render("1", mode="draft")


class TestAmend:
    """Test folding rendered manuals into HEAD."""

    def test_render_and_amend(self, renderer, gm):
        write_template(renderer, "2", "Two\n")

        view_path = renderer.render_and_amend("2")

        gm.amend_paths.assert_called_once_with([view_path])

    def test_nothing_to_amend(self, renderer, gm):
        assert renderer.render_and_amend("2") is None
        gm.amend_paths.assert_not_called()

    def test_render_all(self, renderer, gm):
        renderer.render_all()

        gm.start_interactive_rebase.assert_called_once_with(None, "stepwise editor render-manuals")
