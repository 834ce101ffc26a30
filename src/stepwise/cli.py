"""
Command-line interface for the step tutorial tool.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .commands import ExecCommands
from .config import StepwiseConfig
from .diff_extractor import DiffExtractor
from .diff_renderer import render_step
from .editor import EditorMethod, TodoEditor
from .flag_store import FileFlagStore, FlagStore
from .git_manager import GitManager
from .manual import MODES, ManualRenderer
from .models import StepwiseError
from .step_manager import StepManager
from . import __version__ as PACKAGE_VERSION


console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _print_version(ctx, param, value):
    """Eager option callback to print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"stepwise {PACKAGE_VERSION}")
    ctx.exit()


def setup_logging(log_path: Path, verbose: bool = False, console_level: Optional[str] = None) -> None:
    """Setup logging: a rotating log file always at DEBUG, console logging on stderr only
    when requested via --verbose or --log-level."""
    root = logging.getLogger()
    # Clear existing handlers to avoid duplication in tests / repeated invocations
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(log_path), maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(file_handler)
    except OSError as e:
        err_console.print(f"[dim]Cannot write log file {log_path}: {e}[/dim]")

    if verbose or console_level:
        level_map = {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warning": logging.WARNING,
            "error": logging.ERROR,
        }
        console_handler = RichHandler(console=err_console, rich_tracebacks=True)
        console_handler.setLevel(level_map.get((console_level or "info").lower(), logging.INFO))
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(console_handler)


def _git_manager(ctx: click.Context) -> GitManager:
    if "git_manager" not in ctx.obj:
        ctx.obj["git_manager"] = GitManager(ctx.obj.get("repo_path"))
    return ctx.obj["git_manager"]


def _flag_store(ctx: click.Context) -> FlagStore:
    if "flag_store" not in ctx.obj:
        ctx.obj["flag_store"] = FileFlagStore(_git_manager(ctx).git_dir / "stepwise" / "flags")
    return ctx.obj["flag_store"]


def _fail(error: Exception, title: str = "Error") -> None:
    err_console.print(f"❌ {title}: {error}", style="bold red")
    logger.debug(title, exc_info=True)
    sys.exit(1)


def _cancel() -> None:
    err_console.print("🚫 Operation cancelled by user", style="bold yellow")
    logger.debug("Operation cancelled by user", exc_info=True)
    sys.exit(130)


@click.group()
@click.option(
    "--version",
    "-V",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose console logging (INFO)")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Console log level. By default, console logging is disabled.",
)
@click.option(
    "--repo-path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to repository (defaults to current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_level: Optional[str], repo_path: Optional[Path]) -> None:
    """Stepwise - step numbered git tutorials: rebase todo editing and diff rendering."""
    config = StepwiseConfig.from_env()
    setup_logging(config.log_path, verbose, console_level=log_level)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["repo_path"] = repo_path.resolve() if isinstance(repo_path, Path) else None
    logger.debug(f"CLI init: cwd={Path.cwd()} repo_path={ctx.obj['repo_path']} args={sys.argv[1:]}")


@cli.command()
@click.argument("method")
@click.argument("todo_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--message", "-m", default=None, help="Message for the reword method")
@click.option(
    "--mode",
    type=click.Choice(MODES),
    default=None,
    help="Manual mode for the format-manuals method",
)
@click.pass_context
def editor(
    ctx: click.Context, method: str, todo_path: Path, message: Optional[str], mode: Optional[str]
) -> None:
    """
    Rewrite the rebase todo at TODO_PATH using METHOD.

    Used as git's sequence editor, e.g.
    GIT_SEQUENCE_EDITOR="stepwise editor edit" git rebase -i <base>
    """
    try:
        gm = _git_manager(ctx)
        config: StepwiseConfig = ctx.obj["config"]
        if EditorMethod.from_token(method) is EditorMethod.SORT:
            # The edited commit is HEAD now; its subject tells where the step moved
            StepManager(gm, _flag_store(ctx), config).record_edited_step()
        todo_editor = TodoEditor(_flag_store(ctx), ExecCommands(config.program))
        todo_editor.edit_file(
            todo_path, method, message=message, mode=mode, branch=gm.get_current_branch()
        )
    except StepwiseError as e:
        _fail(e, "Editor failed")


@cli.command("diff-step")
@click.argument("step")
@click.pass_context
def diff_step(ctx: click.Context, step: str) -> None:
    """Print the annotated markdown diff of STEP."""
    try:
        click.echo(render_step(DiffExtractor(_git_manager(ctx)), step))
    except StepwiseError as e:
        _fail(e, "Diff rendering failed")


@cli.group()
def flags() -> None:
    """Read and write the repository's rebase flags."""
    pass


@flags.command("get")
@click.argument("key")
@click.pass_context
def flags_get(ctx: click.Context, key: str) -> None:
    """Print the value of KEY (nothing if unset)."""
    try:
        value = _flag_store(ctx).get(key)
    except (StepwiseError, ValueError) as e:
        _fail(e)
    if value is not None:
        click.echo(value)


@flags.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def flags_set(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY to VALUE."""
    try:
        _flag_store(ctx).set(key, value)
    except (StepwiseError, ValueError) as e:
        _fail(e)


@flags.command("remove")
@click.argument("key")
@click.pass_context
def flags_remove(ctx: click.Context, key: str) -> None:
    """Remove KEY."""
    try:
        _flag_store(ctx).remove(key)
    except (StepwiseError, ValueError) as e:
        _fail(e)


@flags.command("list")
@click.pass_context
def flags_list(ctx: click.Context) -> None:
    """Show all flags."""
    try:
        items = _flag_store(ctx).items()
    except StepwiseError as e:
        _fail(e)
    if not items:
        console.print("No flags set.")
        return
    table = Table(title="Flags")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in items.items():
        table.add_row(key, value)
    console.print(table)


@cli.group()
def step() -> None:
    """Edit and reword tutorial steps."""
    pass


@step.command("edit")
@click.argument("number")
@click.pass_context
def step_edit(ctx: click.Context, number: str) -> None:
    """Start a rebase that stops at step NUMBER for editing."""
    try:
        StepManager(_git_manager(ctx), _flag_store(ctx), ctx.obj["config"]).edit_step(number)
        console.print(
            f"✏️  Editing step {number}. Amend it, then run 'git rebase --continue'. "
            "Changing the step number in the subject renumbers the steps that follow."
        )
    except StepwiseError as e:
        _fail(e, "Step edit failed")
    except (click.Abort, KeyboardInterrupt):
        _cancel()


@step.command("reword")
@click.argument("number")
@click.option("--message", "-m", required=True, help="New step text")
@click.pass_context
def step_reword(ctx: click.Context, number: str, message: str) -> None:
    """Replace the text of step NUMBER."""
    try:
        StepManager(_git_manager(ctx), _flag_store(ctx), ctx.obj["config"]).reword_step(number, message)
        console.print(f"✅ Reworded step {number}", style="bold green")
    except StepwiseError as e:
        _fail(e, "Step reword failed")
    except (click.Abort, KeyboardInterrupt):
        _cancel()


@cli.group()
def rebase() -> None:
    """Helpers invoked by exec operations while a rebase is running."""
    pass


@rebase.command("reword")
@click.option("--message", "-m", default=None, help="Replacement step text")
@click.pass_context
def rebase_reword(ctx: click.Context, message: Optional[str]) -> None:
    """Renumber HEAD according to its position, optionally replacing its text."""
    try:
        StepManager(_git_manager(ctx), _flag_store(ctx), ctx.obj["config"]).reword_head(message)
    except StepwiseError as e:
        _fail(e, "Reword failed")


@rebase.command("super-pick")
@click.argument("commit_hash")
@click.pass_context
def rebase_super_pick(ctx: click.Context, commit_hash: str) -> None:
    """Apply the super step commit COMMIT_HASH."""
    try:
        StepManager(_git_manager(ctx), _flag_store(ctx), ctx.obj["config"]).super_pick(commit_hash)
    except StepwiseError as e:
        _fail(e, "Super pick failed")


@cli.group()
def manual() -> None:
    """Render tutorial manuals."""
    pass


@manual.command("render")
@click.argument("number", required=False)
@click.option("--root", "root", is_flag=True, help="Render the root manual (README.md)")
@click.option("--all", "render_all", is_flag=True, help="Re-render every manual in history")
@click.option("--mode", type=click.Choice(MODES), default="prod", show_default=True)
@click.option("--amend", is_flag=True, help="Fold the rendered manual into HEAD")
@click.pass_context
def manual_render(
    ctx: click.Context,
    number: Optional[str],
    root: bool,
    render_all: bool,
    mode: str,
    amend: bool,
) -> None:
    """Render the manual of step NUMBER, the root manual, or all manuals."""
    if sum([number is not None, root, render_all]) != 1:
        raise click.UsageError("Give exactly one of NUMBER, --root or --all")
    try:
        renderer = ManualRenderer(_git_manager(ctx), ctx.obj["config"])
        if render_all:
            renderer.render_all()
            return
        if amend:
            renderer.render_and_amend(number, mode)
        else:
            renderer.render(number, mode)
    except StepwiseError as e:
        _fail(e, "Manual rendering failed")
    except (click.Abort, KeyboardInterrupt):
        _cancel()


def main() -> None:
    cli(obj={}, prog_name="stepwise")
