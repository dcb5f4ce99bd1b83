"""git-hook-installer CLI.

Usage:
    git-hook-installer [install]          Install/update the managed pre-commit hook
    git-hook-installer disable            Turn the managed block off (GHI_ENABLED=0)
    git-hook-installer uninstall          Remove the managed block
    git-hook-installer status             Report hook state for this repository
    git-hook-installer list               List available hooks
    git-hook-installer config show|set|path

install, disable and uninstall take --scan DIR to operate on every
repository found under DIR instead of the current one.
"""

from __future__ import annotations

import functools
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click

from . import __version__
from .bulk import BulkReport, run_across_repos
from .config import ToolConfig, config_path
from .errors import HookInstallerError, RepositoryNotFoundError
from .git import RepositoryLocation, find_git_repos_under_dir, require_git_repo
from .hookfile import (
    HookAction,
    HookResult,
    InstallOptions,
    disable_managed_hook,
    uninstall_managed_hook,
    upsert_managed_hook,
)
from .manifest import (
    ResolveOptions,
    relative_display,
    resolve_manifest_dir,
    resolve_manifest_dir_best_effort,
)

logger = logging.getLogger("git_hook_installer.cli")

AVAILABLE_HOOKS = {
    "pre-commit": "formatters/linters for staged files, with stash/rollback (managed block)",
}

_ACTION_MESSAGES = {
    HookAction.CREATED: "Installed managed {hook} hook",
    HookAction.UPDATED: "Updated managed {hook} hook",
    HookAction.UNCHANGED: "Managed {hook} hook unchanged",
    HookAction.DISABLED: "Disabled managed {hook} hook",
    HookAction.UNINSTALLED: "Removed managed block from {hook} hook",
    HookAction.REMOVED: "Removed {hook} hook (no other content left)",
    HookAction.SKIPPED: "Skipped {hook} hook",
}


@dataclass
class CliState:
    options: InstallOptions
    config: ToolConfig
    cwd: Path

    @property
    def prompts_allowed(self) -> bool:
        return not (self.options.assume_yes or self.options.non_interactive)


def _reports_errors(f):
    """Turn domain errors into a clean ``Error: ...`` exit."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except HookInstallerError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def _current_repo(state: CliState) -> RepositoryLocation | None:
    try:
        return require_git_repo(state.cwd)
    except RepositoryNotFoundError:
        click.echo("Not inside a git repository (no .git directory found).", err=True)
        return None


def _scan_repos(scan_dir: str, max_depth: int | None, state: CliState) -> list[RepositoryLocation]:
    depth = state.config.scan_max_depth if max_depth is None else max_depth
    repos = find_git_repos_under_dir(
        Path(scan_dir).absolute(), depth, state.config.scan_max_entries,
    )
    click.echo(f"Found {len(repos)} git repositories under {scan_dir} (depth {depth})")
    return repos


def _describe(result: HookResult, hook_name: str) -> str:
    message = _ACTION_MESSAGES[result.action].format(hook=hook_name)
    if result.detail:
        message += f" ({result.detail})"
    return message


def _echo_result(result: HookResult, hook_name: str) -> None:
    click.echo(f"{_describe(result, hook_name)}: {result.path}")
    if result.backup:
        click.echo(f"  Backed up previous hook to {result.backup}")
    if result.snapshot:
        click.echo(f"  Snapshot saved to {result.snapshot}")


def _run_bulk(repos: list[RepositoryLocation], operation, hook_name: str) -> BulkReport:
    def on_result(repo: RepositoryLocation, result: HookResult | None, error: Exception | None):
        if error is not None:
            click.echo(f"  FAIL {repo.root}: {error}", err=True)
        else:
            detail = f" ({result.detail})" if result.detail else ""
            click.echo(f"  {result.action.value.upper():<11} {repo.root}{detail}")

    report = run_across_repos(repos, operation, on_result=on_result)
    changed = sum(1 for _, r in report.results if r.changed)
    click.echo(
        f"\n{len(repos)} repositories: {changed} changed, "
        f"{len(report.results) - changed} unchanged or skipped, {len(report.failures)} failed"
    )
    if not report.ok:
        click.echo(f"Failed to update {hook_name} in {len(report.failures)} repositories.", err=True)
        sys.exit(1)
    return report


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Automatically answer yes to prompts")
@click.option("--non-interactive", is_flag=True, help="Never prompt; fail instead of asking")
@click.option("-f", "--force", is_flag=True, help="Overwrite existing hooks without prompting")
@click.pass_context
def main(ctx: click.Context, verbose: bool, assume_yes: bool, non_interactive: bool, force: bool):
    """git-hook-installer: manage a formatter pre-commit hook in git repositories."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        config = ToolConfig.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    ctx.obj = CliState(
        options=InstallOptions(assume_yes=assume_yes, non_interactive=non_interactive, force=force),
        config=config,
        cwd=Path.cwd(),
    )
    if ctx.invoked_subcommand is None:
        ctx.invoke(install)


@main.command()
@click.option("--manifest-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Directory containing the Cargo.toml to run cargo fmt in")
@click.option("--scan", "scan_dir", type=click.Path(exists=True, file_okay=False),
              help="Install into every git repository found under this directory")
@click.option("--max-depth", type=click.IntRange(min=0), default=None,
              help="Directory depth for --scan (default: scan_max_depth from config)")
@click.pass_obj
@_reports_errors
def install(state: CliState, manifest_dir: Path | None, scan_dir: str | None, max_depth: int | None):
    """Install or update the managed pre-commit hook."""
    from .detect import detect_settings
    from .script import managed_pre_commit_block

    config = state.config

    def install_into(location: RepositoryLocation, cwd: Path) -> HookResult:
        if manifest_dir is not None:
            cargo_dir = resolve_manifest_dir(
                manifest_dir, cwd, location.root, ResolveOptions(assume_yes=True, non_interactive=True),
                max_depth=config.manifest_max_depth,
                max_entries=config.manifest_max_entries,
            )
        else:
            cargo_dir = resolve_manifest_dir_best_effort(
                None, cwd, location.root,
                max_depth=config.manifest_max_depth,
                max_entries=config.manifest_max_entries,
            )
        settings, choices = detect_settings(location.root, cargo_dir)
        for choice in choices:
            if choice.detected:
                logger.info("%s: %s (%s)", choice.language, choice.tool, choice.reason)
        block = managed_pre_commit_block(settings, location.root)
        return upsert_managed_hook(
            location.git_dir, block, state.options,
            hook_name=config.hook_name,
            max_snapshots=config.max_snapshots,
        )

    if scan_dir is not None:
        repos = _scan_repos(scan_dir, max_depth, state)
        if not repos:
            return
        if state.prompts_allowed and not click.confirm(
            f"Install/update managed {config.hook_name} hook in {len(repos)} repositories?",
            default=True,
        ):
            click.echo("No hook selected.")
            return
        _run_bulk(repos, lambda repo: install_into(repo, repo.root), config.hook_name)
        return

    location = _current_repo(state)
    if location is None:
        return

    if state.prompts_allowed and not click.confirm(
        f"Install/update managed {config.hook_name} hook "
        "(formatters/linters + safe stash/rollback)?",
        default=True,
    ):
        click.echo("No hook selected.")
        return

    _echo_result(install_into(location, state.cwd), config.hook_name)


@main.command()
@click.option("--scan", "scan_dir", type=click.Path(exists=True, file_okay=False),
              help="Disable in every git repository found under this directory")
@click.option("--max-depth", type=click.IntRange(min=0), default=None,
              help="Directory depth for --scan (default: scan_max_depth from config)")
@click.pass_obj
@_reports_errors
def disable(state: CliState, scan_dir: str | None, max_depth: int | None):
    """Disable the managed block without removing it (sets GHI_ENABLED=0)."""
    config = state.config
    if scan_dir is not None:
        repos = _scan_repos(scan_dir, max_depth, state)
        _run_bulk(
            repos,
            lambda repo: disable_managed_hook(
                repo.git_dir, hook_name=config.hook_name, best_effort=True,
                max_snapshots=config.max_snapshots,
            ),
            config.hook_name,
        )
        return

    location = _current_repo(state)
    if location is None:
        return
    result = disable_managed_hook(
        location.git_dir, hook_name=config.hook_name, max_snapshots=config.max_snapshots,
    )
    _echo_result(result, config.hook_name)


@main.command()
@click.option("--scan", "scan_dir", type=click.Path(exists=True, file_okay=False),
              help="Uninstall from every git repository found under this directory")
@click.option("--max-depth", type=click.IntRange(min=0), default=None,
              help="Directory depth for --scan (default: scan_max_depth from config)")
@click.pass_obj
@_reports_errors
def uninstall(state: CliState, scan_dir: str | None, max_depth: int | None):
    """Remove the managed block, leaving other hook content in place."""
    config = state.config
    if scan_dir is not None:
        repos = _scan_repos(scan_dir, max_depth, state)
        _run_bulk(
            repos,
            lambda repo: uninstall_managed_hook(
                repo.git_dir, hook_name=config.hook_name, best_effort=True,
                max_snapshots=config.max_snapshots,
            ),
            config.hook_name,
        )
        return

    location = _current_repo(state)
    if location is None:
        return
    result = uninstall_managed_hook(
        location.git_dir, hook_name=config.hook_name, max_snapshots=config.max_snapshots,
    )
    _echo_result(result, config.hook_name)


@main.command("list")
def list_hooks():
    """List available hooks."""
    click.echo("Available hooks:")
    for name, description in AVAILABLE_HOOKS.items():
        click.echo(f"  {name:<12} {description}")


@main.command()
@click.option("--manifest-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Cargo.toml directory to report against")
@click.option("--verbose", "show_summary", is_flag=True, help="Print a summary of the hook contents")
@click.pass_obj
@_reports_errors
def status(state: CliState, manifest_dir: Path | None, show_summary: bool):
    """Show hook state for the current repository."""
    from .status import inspect_hook

    location = _current_repo(state)
    if location is None:
        return

    hook = state.config.hook_name
    click.echo(f"Repository: {location.root}")
    click.echo(f"Git dir:    {location.git_dir}")
    click.echo(f"Hooks dir:  {location.hooks_dir}")

    info = inspect_hook(location, hook)
    if not info.hooks_dir_exists:
        click.echo("Hooks dir status: missing")
        click.echo(f"{hook}: not installed")
        return

    cargo_dir = resolve_manifest_dir_best_effort(
        manifest_dir, state.cwd, location.root,
        max_depth=state.config.manifest_max_depth,
        max_entries=state.config.manifest_max_entries,
    )
    if cargo_dir is not None:
        click.echo(f"Cargo manifest dir: {relative_display(location.root, cargo_dir)}")

    if not info.installed:
        click.echo(f"{hook}: not installed")
    else:
        click.echo(f"{hook}: installed")
        if info.executable is not None:
            click.echo(f"{hook} executable: {str(info.executable).lower()}")
        click.echo(f"{hook} readable: {str(info.readable).lower()}")
        if info.readable:
            click.echo(f"{hook} has managed block: {str(info.managed).lower()}")
            if info.malformed:
                click.echo(f"{hook} managed block is malformed: {info.malformed}")
            elif info.enabled is not None:
                state_word = "enabled" if info.enabled == "1" else "disabled"
                click.echo(f"{hook} managed block: {state_word} (GHI_ENABLED={info.enabled})")
            if info.cd_dir:
                click.echo(f"{hook} cd: {info.cd_dir}")
            if show_summary:
                click.echo(f"{hook} lines: {info.line_count}")
                click.echo(f"{hook} shebang: {str(info.has_shebang).lower()}")

    if info.backups:
        click.echo(f"{hook} backups: {', '.join(info.backups)}")
    if info.snapshots:
        click.echo(f"{hook} snapshots ({len(info.snapshots)}):")
        for name in info.snapshots:
            click.echo(f"  {name}")


@main.group()
def config():
    """Show or change user configuration."""
    pass


@config.command("show")
@click.pass_obj
def config_show(state: CliState):
    """Print the effective configuration."""
    from dataclasses import asdict

    for key, value in asdict(state.config).items():
        click.echo(f"{key:<22} {value}")


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(state: CliState, key: str, value: str):
    """Set KEY to VALUE and save."""
    try:
        state.config.set_value(key, value)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Set {key} = {getattr(state.config, key)} in {config_path()}")


@config.command("path")
def config_path_cmd():
    """Print the config file location."""
    click.echo(str(config_path()))


if __name__ == "__main__":
    main()
