"""
Defines the command-line interface for the application using Typer.
Every command builds a CLIManager from the config file and runs one operation.
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from ah_cli_manager import __version__
from ah_cli_manager.core.manager import CLIManager
from ah_cli_manager.exceptions import AuraHelperError, ConfigurationError
from ah_cli_manager.models.config import SORT_ORDERS, ManagerConfig
from ah_cli_manager.storage.config_manager import ConfigManager

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_dependency_errors,
    print_metadata_types,
    print_package_result,
    print_permissions,
    print_retrieve_result,
    print_summary_panel,
)
from .progress_display import ProgressDisplay

T = TypeVar("T")

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("ah_cli_manager")

app = typer.Typer(
    name="ah-cli-manager",
    help=(
        "Run Aura Helper CLI operations on a Salesforce project. Use"
        " 'ah-cli-manager <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
package_app = typer.Typer(help="Create package.xml and destructive changes files.")
app.add_typer(package_app, name="package")


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "ah-cli-manager"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def build_manager(settings: dict[str, Any]) -> CLIManager:
    """
    Builds a manager from the config file (when present) and the global options.

    Raises:
        ConfigurationError: If the file or the resulting settings are invalid.
    """
    config_file: Path = settings["config_file"]
    overrides = {key: value for key, value in settings["overrides"].items() if value is not None}
    if config_file.is_file():
        config = ConfigManager(config_file).load_config(overrides)
    else:
        log.debug(f"No config file at '{config_file}', using defaults.")
        try:
            config = ManagerConfig(**overrides)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings:\n{e}") from e
    log_dir = CONFIG_DIR / "logs" if settings.get("log_json") else None
    return CLIManager.from_config(config, log_dir=log_dir)


def _run(
    ctx: typer.Context,
    description: str,
    operation: Callable[[CLIManager], Awaitable[T]],
    quiet: bool = False,
) -> T:
    """Runs one manager operation with a progress display and renders its errors."""
    try:
        manager = build_manager(ctx.obj)
    except AuraHelperError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    async def _run_async() -> T:
        async with ProgressDisplay(console, description, quiet=quiet) as display:
            manager.on_progress(display.handle_progress)
            try:
                return await operation(manager)
            except asyncio.CancelledError:
                manager.abort_process()
                raise

    try:
        return asyncio.run(_run_async())
    except AuraHelperError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    finally:
        manager.close()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    config_file: Path | None = typer.Option(  # noqa: B008
        None, "--config", help="Path of the config file to use."
    ),
    project: Path | None = typer.Option(  # noqa: B008
        None, "--project", "-p", help="Salesforce project folder (overrides config)."
    ),
    api_version: str | None = typer.Option(
        None, "--api-version", help="Salesforce API version (overrides config)."
    ),
    log_json: bool = typer.Option(
        False, "--log-json", help="Write JSON-lines event logs to the config folder."
    ),
):
    """Aura Helper CLI Manager"""
    if version:
        console.print(f"[bold]ah-cli-manager[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("ah_cli_manager").setLevel(log_level)

    ctx.obj = {
        "config_file": config_file or CONFIG_FILE,
        "overrides": {
            "project_folder": str(project) if project else None,
            "api_version": api_version,
        },
        "log_json": log_json,
    }

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    ctx: typer.Context,
    project_folder: Path = typer.Argument(  # noqa: B008
        Path("."), help="Salesforce project folder."
    ),
    api_version: str | None = typer.Option(None, "--api-version", help="API version."),
    namespace_prefix: str = typer.Option("", "--namespace", help="Org namespace prefix."),
    compress: bool = typer.Option(
        False, "--compress/--no-compress", help="Compress XML files the tool writes."
    ),
    sort_order: str | None = typer.Option(
        None, "--sort-order", help=f"XML sort order: {', '.join(SORT_ORDERS)}."
    ),
    ignore_file: Path | None = typer.Option(  # noqa: B008
        None, "--ignore-file", help="Ignore file (default: <project>/.ahignore.json)."
    ),
    output_path: Path | None = typer.Option(  # noqa: B008
        None, "--output-path", help="Folder for generated package files."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config without asking."
    ),
):
    """Create the configuration file."""
    config_file: Path = ctx.obj["config_file"]
    if (
        config_file.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        "project_folder": str(project_folder.expanduser().resolve()),
        "api_version": api_version,
        "namespace_prefix": namespace_prefix,
        "compress_files": compress,
        "sort_order": sort_order,
        "ignore_file": str(ignore_file) if ignore_file else None,
        "output_path": str(output_path) if output_path else None,
    }
    try:
        ConfigManager(config_file).save_new_config(settings)
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"\n[bold green]✓ Configuration saved to '{config_file}'[/bold green]")
    console.print("Check your setup with: [cyan]ah-cli-manager check[/cyan]")


@app.command(name="show-config")
def show_config(ctx: typer.Context):
    """Display the current configuration."""
    config_file: Path = ctx.obj["config_file"]
    if not config_file.is_file():
        console.print(
            "[red]✗ Config file not found.[/] Run [cyan]ah-cli-manager init[/cyan] first."
        )
        raise typer.Exit(code=1)
    try:
        config = ConfigManager(config_file).load_config()
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
    print_config(config_file, config.model_dump())


@app.command()
def compress(
    ctx: typer.Context,
    paths: list[str] = typer.Argument(  # noqa: B008
        ..., help="XML files, or a single folder, to compress."
    ),
    sort_order: str | None = typer.Option(
        None, "--sort-order", help=f"XML sort order: {', '.join(SORT_ORDERS)}."
    ),
):
    """Compress (sort and re-indent) XML metadata files."""
    start_time = time.monotonic()
    _run(ctx, "Compressing", lambda manager: manager.compress(paths, sort_order))
    print_summary_panel("compress", time.monotonic() - start_time, {"Paths": len(paths)})


@app.command()
def compare(
    ctx: typer.Context,
    target: str | None = typer.Argument(
        None, help="Target org alias or username. Omit to compare org against local."
    ),
    source: str | None = typer.Option(
        None, "--source", help="Source org alias (default: the project org)."
    ),
):
    """Compare the project org with the local project, or two orgs."""
    if target is None:
        result = _run(ctx, "Comparing org with local", lambda m: m.compare_with_org())
        title = "Metadata only in the org"
    else:
        result = _run(
            ctx,
            "Comparing orgs",
            lambda m: m.compare_org_between(source, target)
            if source
            else m.compare_org_between(target),
        )
        title = f"Metadata only in {target}"
    print_metadata_types(result, title)


@app.command()
def describe(
    ctx: typer.Context,
    types: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Metadata types to describe (default: all)."
    ),
    org: bool = typer.Option(False, "--org", help="Describe the org instead of local."),
    download_all: bool = typer.Option(
        False, "--download-all", help="Include metadata from every namespace (org only)."
    ),
    group_global_actions: bool = typer.Option(
        False, "--group-global-actions", help="Group global quick actions together."
    ),
):
    """Describe the metadata types of the local project or the org."""
    if org:
        result = _run(
            ctx,
            "Describing org metadata",
            lambda m: m.describe_org_metadata(types, download_all, group_global_actions),
        )
    else:
        result = _run(
            ctx,
            "Describing local metadata",
            lambda m: m.describe_local_metadata(types, group_global_actions),
        )
    print_metadata_types(result, "Org Metadata" if org else "Local Metadata")


@app.command(name="retrieve-special")
def retrieve_special(
    ctx: typer.Context,
    types: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Special types (or Type:Object) to retrieve (default: all)."
    ),
    source: str = typer.Option(
        "local", "--from", help="Where to retrieve from: local, org or mixed."
    ),
    download_all: bool = typer.Option(
        False, "--download-all", help="Include metadata from every namespace."
    ),
):
    """Retrieve special types (profiles, permission sets, translations...)."""
    if source == "local":
        operation = lambda m: m.retrieve_local_special_metadata(types)  # noqa: E731
    elif source == "org":
        operation = lambda m: m.retrieve_org_special_metadata(types, download_all)  # noqa: E731
    elif source == "mixed":
        operation = lambda m: m.retrieve_mixed_special_metadata(types, download_all)  # noqa: E731
    else:
        console.print(f"[red]✗ Unknown source '{source}'. Use local, org or mixed.[/red]")
        raise typer.Exit(code=1)
    print_retrieve_result(_run(ctx, "Retrieving special metadata", operation))


@app.command()
def permissions(ctx: typer.Context):
    """List the user permissions available in the project org."""
    print_permissions(_run(ctx, "Loading permissions", lambda m: m.load_user_permissions()))


@package_app.command("git")
def package_git(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Source branch, tag or commit."),
    target: str | None = typer.Argument(None, help="Target branch, tag or commit."),
    create_type: str | None = typer.Option(
        None, "--type", help="package, destructive or both."
    ),
    delete_order: str | None = typer.Option(
        None, "--delete-order", help="Deploy destructive changes before or after."
    ),
    use_ignore: bool = typer.Option(False, "--use-ignore", help="Apply the ignore file."),
):
    """Create package files from the git differences between two refs."""
    result = _run(
        ctx,
        "Creating package from git",
        lambda m: m.create_package_from_git(
            source, target, create_type, delete_order, use_ignore
        ),
    )
    print_package_result(result)


@package_app.command("json")
def package_json(
    ctx: typer.Context,
    source: Path = typer.Argument(..., help="Metadata JSON file."),  # noqa: B008
    create_type: str | None = typer.Option(
        None, "--type", help="package, destructive or both."
    ),
    delete_order: str | None = typer.Option(
        None, "--delete-order", help="Deploy destructive changes before or after."
    ),
    use_ignore: bool = typer.Option(False, "--use-ignore", help="Apply the ignore file."),
    explicit: bool = typer.Option(
        True, "--explicit/--wildcards", help="List every member instead of wildcards."
    ),
):
    """Create package files from a Metadata JSON file."""
    result = _run(
        ctx,
        "Creating package from JSON",
        lambda m: m.create_package_from_json(
            source, create_type, delete_order, use_ignore, explicit
        ),
    )
    print_package_result(result)


@package_app.command("merge")
def package_merge(
    ctx: typer.Context,
    sources: list[Path] = typer.Argument(  # noqa: B008
        ..., help="Package or destructive XML files to merge."
    ),
    create_type: str | None = typer.Option(
        None, "--type", help="package, destructive or both."
    ),
    delete_order: str | None = typer.Option(
        None, "--delete-order", help="Deploy destructive changes before or after."
    ),
    use_ignore: bool = typer.Option(False, "--use-ignore", help="Apply the ignore file."),
):
    """Merge existing package files into new ones."""
    result = _run(
        ctx,
        "Merging packages",
        lambda m: m.create_package_from_other_packages(
            [str(path) for path in sources], create_type, delete_order, use_ignore
        ),
    )
    print_package_result(result)


@app.command()
def ignore(
    ctx: typer.Context,
    types: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Metadata types to process (default: all)."
    ),
):
    """Remove the metadata listed in the ignore file from the project."""
    start_time = time.monotonic()
    _run(ctx, "Ignoring metadata", lambda m: m.ignore_metadata(types))
    print_summary_panel("ignore", time.monotonic() - start_time)


@app.command()
def repair(
    ctx: typer.Context,
    types: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Types, Type:Object or Type:Object:Item to repair (default: all)."
    ),
    only_check: bool = typer.Option(
        False, "--check", help="Only report the errors, do not change files."
    ),
    use_ignore: bool = typer.Option(False, "--use-ignore", help="Apply the ignore file."),
):
    """Repair (or check) broken dependencies in the project metadata."""
    start_time = time.monotonic()
    result = _run(
        ctx,
        "Checking dependencies" if only_check else "Repairing dependencies",
        lambda m: m.repair_dependencies(types, only_check, use_ignore),
    )
    if only_check:
        print_dependency_errors(result or {})
    else:
        repaired = len(result) if isinstance(result, dict) else 0
        print_summary_panel(
            "repair", time.monotonic() - start_time, {"Types repaired": repaired}
        )


@app.command()
def version(ctx: typer.Context):
    """Show the installed Aura Helper CLI version."""
    cli_version = _run(ctx, "Reading version", lambda m: m.get_cli_version(), quiet=True)
    console.print(f"[bold]Aura Helper CLI[/bold] version [cyan]{cli_version}[/cyan]")


@app.command()
def check(ctx: typer.Context):
    """Check that Aura Helper CLI is installed and reachable."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    installed = _run(ctx, "Checking", lambda m: m.is_cli_installed(), quiet=True)
    if not installed:
        console.print(
            "[red]✗ Aura Helper CLI is not installed.[/] Install it with "
            "[cyan]npm install -g aura-helper-framework[/cyan]."
        )
        raise typer.Exit(code=1)
    cli_version = _run(ctx, "Reading version", lambda m: m.get_cli_version(), quiet=True)
    console.print(f"[green]✓[/] Aura Helper CLI [cyan]{cli_version}[/cyan] is installed.")

    config_file: Path = ctx.obj["config_file"]
    if config_file.is_file():
        console.print(f"[green]✓[/] Config file exists at: [dim]{config_file}[/dim]")
    else:
        console.print("[yellow]○[/] No config file. Defaults are used.")


@app.command()
def update(
    ctx: typer.Context,
    npm: bool = typer.Option(False, "--npm", help="Update through npm."),
):
    """Update Aura Helper CLI."""
    if npm:
        output = _run(ctx, "Updating with npm", lambda m: m.update_cli_with_npm(), quiet=True)
    else:
        output = _run(ctx, "Updating", lambda m: m.update_cli(), quiet=True)
    if output:
        console.print(output if isinstance(output, str) else str(output), markup=False)
    console.print("[green]✓ Update finished.[/green]")
