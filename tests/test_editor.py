"""
Tests for the rebase todo editor.
"""

import pytest

from stepwise.commands import ExecCommands
from stepwise.editor import EditorMethod, TodoEditor
from stepwise.flag_store import (
    HOOK_STEP,
    REBASE_BRANCH,
    REBASE_HOOKS_DISABLED,
    REBASE_NEW_STEP,
    REBASE_OLD_STEP,
    MemoryFlagStore,
)
from stepwise.models import RebaseMethod
from stepwise.todo_codec import decode, encode


CLEANUP = "exec stepwise flags remove HOOK_STEP"
DISABLE_HOOKS = "exec stepwise flags set REBASE_HOOKS_DISABLED 1"
REWORD = "exec GIT_EDITOR=true stepwise rebase reword"


def lines(todo):
    return encode(todo).splitlines()


@pytest.fixture
def store():
    return MemoryFlagStore()


@pytest.fixture
def editor(store):
    return TodoEditor(store, ExecCommands("stepwise"))


class TestDispatch:
    """Test method dispatch."""

    def test_every_method_has_a_handler(self, editor):
        assert set(editor._handlers) == set(EditorMethod)

    def test_from_token(self):
        assert EditorMethod.from_token("render-manuals") is EditorMethod.RENDER_MANUALS
        assert EditorMethod.from_token("bogus") is None
        assert EditorMethod.from_token(None) is None

    def test_unknown_method_only_appends_cleanup(self, editor):
        text = "pick abcdef1 Step 1: Foo\npick 1234567 Step 2: Bar\n"
        result = editor.transform(None, decode(text))

        assert lines(result) == text.splitlines() + [CLEANUP]


class TestEditStep:
    """Test the edit method."""

    TODO = (
        "pick abcdef1 Step 4: X\n"
        "pick 1234567 Step 4.1: Y\n"
        "pick 89abcde Step 5: Z\n"
    )

    def test_marks_first_operation_and_schedules_sort(self, editor):
        result = editor.transform(EditorMethod.EDIT, decode(self.TODO))
        ops = result.operations

        assert [op.method for op in ops].count(RebaseMethod.EDIT) == 1
        assert ops[0].method is RebaseMethod.EDIT
        assert ops[0].hash == "abcdef1"
        assert ops[1].method is RebaseMethod.EXEC
        assert "editor sort" in ops[1].message
        assert ops[1].message.endswith("git rebase --edit-todo")
        assert [op.method for op in ops[2:4]] == [RebaseMethod.PICK, RebaseMethod.PICK]
        assert lines(result)[-1] == CLEANUP
        assert sum(1 for op in ops if "editor sort" in op.message) == 1

    def test_records_step_numbers(self, editor, store):
        editor.transform(EditorMethod.EDIT, decode(self.TODO))

        assert store.get(REBASE_OLD_STEP) == "4"
        assert store.get(REBASE_NEW_STEP) == "4"

    def test_root_commit(self, editor, store):
        editor.transform(EditorMethod.EDIT, decode("pick 0000000 Create tutorial\npick abcdef1 Step 1: X\n"))

        assert store.get(REBASE_OLD_STEP) == "root"
        assert store.get(REBASE_NEW_STEP) == "root"

    def test_single_operation_needs_no_sort(self, editor, store):
        result = editor.transform(EditorMethod.EDIT, decode("pick abcdef1 Step 4: X\n"))

        assert lines(result) == ["edit abcdef1 Step 4: X", CLEANUP]
        assert store.get(REBASE_OLD_STEP) is None

    def test_leading_comment_is_not_the_first_operation(self, editor):
        result = editor.transform(EditorMethod.EDIT, decode("# note\npick abcdef1 Step 4: X\npick 1234567 Step 5: Y\n"))

        assert lines(result)[0] == "# note"
        assert lines(result)[1] == "edit abcdef1 Step 4: X"


class TestSortSteps:
    """Test the sort method."""

    TODO = (
        "pick aaaaaaa Step 1.2: B\n"
        "pick bbbbbbb Step 1: Super one\n"
        "pick ccccccc Step 2.1: C\n"
        "pick ddddddd Step 2: Super two\n"
    )

    def test_identity_move_only_disables_hooks(self, editor, store):
        store.set(REBASE_OLD_STEP, "1")
        store.set(REBASE_NEW_STEP, "1")

        result = editor.transform(EditorMethod.SORT, decode(self.TODO))

        assert lines(result) == self.TODO.splitlines() + [DISABLE_HOOKS, CLEANUP]
        assert store.get(REBASE_HOOKS_DISABLED) == "1"

    def test_step_numbers_are_consumed(self, editor, store):
        store.set(REBASE_OLD_STEP, "1.1")
        store.set(REBASE_NEW_STEP, "1.2")

        editor.transform(EditorMethod.SORT, decode(self.TODO))

        assert store.get(REBASE_OLD_STEP) is None
        assert store.get(REBASE_NEW_STEP) is None

    def test_renumbering_stops_after_limit(self, editor, store):
        store.set(REBASE_OLD_STEP, "1.1")
        store.set(REBASE_NEW_STEP, "1.2")

        result = editor.transform(EditorMethod.SORT, decode(self.TODO))

        assert lines(result) == [
            "pick aaaaaaa Step 1.2: B",
            REWORD,
            "exec stepwise rebase super-pick bbbbbbb",
            REWORD,
            DISABLE_HOOKS,
            "pick ccccccc Step 2.1: C",
            "pick ddddddd Step 2: Super two",
            CLEANUP,
        ]

    def test_unbounded_renumbering(self, editor, store):
        store.set(REBASE_OLD_STEP, "1")
        store.set(REBASE_NEW_STEP, "1.1")

        result = editor.transform(EditorMethod.SORT, decode(self.TODO))

        assert lines(result) == [
            "pick aaaaaaa Step 1.2: B",
            REWORD,
            "exec stepwise rebase super-pick bbbbbbb",
            REWORD,
            "pick ccccccc Step 2.1: C",
            REWORD,
            "exec stepwise rebase super-pick ddddddd",
            REWORD,
            CLEANUP,
        ]

    def test_non_step_operations_pass_through(self, editor, store):
        store.set(REBASE_OLD_STEP, "root")
        store.set(REBASE_NEW_STEP, "1")
        text = "pick 0000000 Create tutorial\nexec make test\npick aaaaaaa Step 1.1: A\n"

        result = editor.transform(EditorMethod.SORT, decode(text))

        assert lines(result) == [
            "pick 0000000 Create tutorial",
            "exec make test",
            "pick aaaaaaa Step 1.1: A",
            REWORD,
            CLEANUP,
        ]

    def test_missing_flags_count_as_identity(self, editor, store):
        result = editor.transform(EditorMethod.SORT, decode(self.TODO))

        assert lines(result) == self.TODO.splitlines() + [DISABLE_HOOKS, CLEANUP]

    def test_snapshot_is_not_mutated(self, editor, store):
        store.set(REBASE_OLD_STEP, "1")
        store.set(REBASE_NEW_STEP, "1.1")
        todo = decode(self.TODO)

        editor.transform(EditorMethod.SORT, todo)

        assert encode(todo) == self.TODO


class TestRewordStep:
    """Test the reword method."""

    def test_with_message(self, editor):
        result = editor.transform(
            EditorMethod.REWORD, decode("pick abcdef1 Step 2: Old\npick 1234567 Step 3: Next\n"), message="New text"
        )

        assert lines(result) == [
            "pick abcdef1 Step 2: Old",
            "exec stepwise rebase reword --message 'New text'",
            "pick 1234567 Step 3: Next",
            CLEANUP,
        ]

    def test_without_message(self, editor):
        result = editor.transform(EditorMethod.REWORD, decode("pick abcdef1 Step 2: Old\n"))

        assert lines(result) == ["pick abcdef1 Step 2: Old", "exec stepwise rebase reword", CLEANUP]


class TestManuals:
    """Test the render-manuals and format-manuals methods."""

    TODO = (
        "pick 0000000 Create tutorial\n"
        "pick aaaaaaa Step 1.1: A\n"
        "pick bbbbbbb Step 1: One\n"
        "pick ccccccc Step 2: Two\n"
    )

    def test_render_manuals(self, editor):
        result = editor.transform(EditorMethod.RENDER_MANUALS, decode(self.TODO))

        assert lines(result) == [
            "pick 0000000 Create tutorial",
            "exec stepwise manual render --root --amend",
            "pick aaaaaaa Step 1.1: A",
            "pick bbbbbbb Step 1: One",
            "exec stepwise manual render 1 --amend",
            "pick ccccccc Step 2: Two",
            "exec stepwise manual render 2 --amend",
            CLEANUP,
        ]

    def test_render_manuals_keeps_existing_execs(self, editor):
        text = "pick 0000000 Create tutorial\npick bbbbbbb Step 1: One\nexec make test\n"

        result = editor.transform(EditorMethod.RENDER_MANUALS, decode(text))

        assert "exec make test" in lines(result)

    def test_format_manuals_replaces_following_exec(self, editor):
        text = (
            "pick 0000000 Create tutorial\n"
            "pick bbbbbbb Step 1: One\n"
            "exec stepwise manual render 1 --amend\n"
            "pick ccccccc Step 2: Two\n"
        )

        result = editor.transform(EditorMethod.FORMAT_MANUALS, decode(text), mode="dev")

        assert lines(result) == [
            "pick 0000000 Create tutorial",
            "exec stepwise manual render --root --mode dev --amend",
            "pick bbbbbbb Step 1: One",
            "exec stepwise manual render 1 --mode dev --amend",
            "pick ccccccc Step 2: Two",
            "exec stepwise manual render 2 --mode dev --amend",
            CLEANUP,
        ]

    def test_format_manuals_defaults_to_prod(self, editor):
        result = editor.transform(EditorMethod.FORMAT_MANUALS, decode(self.TODO))

        assert "exec stepwise manual render 2 --mode prod --amend" in lines(result)


class TestEditFile:
    """Test rewriting todo files on disk."""

    def test_rewrites_file(self, editor, store, tmp_path):
        todo_path = tmp_path / "git-rebase-todo"
        todo_path.write_text("pick abcdef1 Step 4: X\npick 1234567 Step 5: Y\n\n# Commands:\n")
        store.set(REBASE_HOOKS_DISABLED, "1")

        assert editor.edit_file(todo_path, "edit", branch="master") is True

        content = todo_path.read_text().splitlines()
        assert content[0] == "edit abcdef1 Step 4: X"
        assert "# Commands:" in content
        assert content[-1] == CLEANUP
        assert store.get(REBASE_HOOKS_DISABLED) is None
        assert store.get(REBASE_BRANCH) == "master"

    def test_file_without_operations_is_untouched(self, editor, store, tmp_path):
        todo_path = tmp_path / "git-rebase-todo"
        todo_path.write_text("# nothing here\n")
        store.set(REBASE_HOOKS_DISABLED, "1")

        assert editor.edit_file(todo_path, "edit") is False
        assert todo_path.read_text() == "# nothing here\n"
        assert store.get(REBASE_HOOKS_DISABLED) == "1"

    def test_unknown_method(self, editor, tmp_path):
        todo_path = tmp_path / "git-rebase-todo"
        todo_path.write_text("pick abcdef1 Step 4: X\n")

        editor.edit_file(todo_path, "convert")

        assert todo_path.read_text() == "pick abcdef1 Step 4: X\n" + CLEANUP + "\n"

    def test_detached_head_keeps_branch(self, editor, store, tmp_path):
        todo_path = tmp_path / "git-rebase-todo"
        todo_path.write_text("pick abcdef1 Step 4: X\n")
        store.set(REBASE_BRANCH, "master")

        editor.edit_file(todo_path, "reword", branch=None)

        assert store.get(REBASE_BRANCH) == "master"
        assert store.get(HOOK_STEP) is None
