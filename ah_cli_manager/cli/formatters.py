"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from ah_cli_manager.models.metadata import MetadataType
from ah_cli_manager.models.results import (
    DependenciesCheckResponse,
    PackageGeneratorResult,
    RetrieveResult,
)
from ah_cli_manager.utils.formatting import count_metadata, format_duration


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ToolNotInstalledError": [
            "• Install Aura Helper CLI with `npm install -g aura-helper-framework`.",
            "• Make sure the `aura-helper` executable is on your PATH.",
        ],
        "OperationInProgressError": [
            "• Wait for the running operation to finish, or abort it first.",
            "• Enable `allow_concurrence` to run several operations at once.",
        ],
        "CLIManagerError": [
            "• Aura Helper CLI reported an error for this operation.",
            "• Check that the project is authorized against an org (sfdx/sf).",
            "• Run the command with -vv to see the full tool output.",
        ],
        "ProcessError": [
            "• Aura Helper CLI exited without a response.",
            "• Run `ah-cli-manager check` to verify the installation.",
        ],
        "ProcessKilledError": [
            "• The operation was aborted before it finished.",
        ],
        "ConfigurationError": [
            "• Run `ah-cli-manager init --force` to recreate the configuration.",
            "• Run `ah-cli-manager show-config` to review the current values.",
        ],
        "MissingDirectoryError": [
            "• Check the `--project` option or the `project_folder` setting.",
        ],
        "MissingFileError": [
            "• Check that every file path passed to the command exists.",
        ],
        "WrongFormatError": [
            "• The metadata JSON is malformed. Validate it with a JSON linter.",
        ],
        "OSNotSupportedError": [
            "• Aura Helper CLI only runs on Windows, Linux and macOS.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if value is None or value == "":
            value = "[dim]<not set>[/dim]"
        else:
            value = escape(str(value))
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{escape(str(config_path))}[/dim])",
            border_style="cyan",
        )
    )


def print_metadata_types(
    metadata_types: dict[str, MetadataType], title: str = "Metadata Types"
):
    """Displays a metadata tree (type -> object -> item) with checked marks."""
    console = Console()
    if not metadata_types:
        console.print("[yellow]No metadata types found.[/yellow]")
        return

    tree = Tree(f"[bold]{escape(title)}[/bold]")
    for type_name, metadata_type in metadata_types.items():
        type_branch = tree.add(f"[bold cyan]{escape(type_name)}[/bold cyan]")
        for object_name, metadata_object in metadata_type.childs.items():
            object_branch = type_branch.add(f"[yellow]{escape(object_name)}[/yellow]")
            for item_name in metadata_object.childs:
                object_branch.add(escape(item_name))
    console.print(tree)

    counts = count_metadata(metadata_types)
    console.print(
        f"\n[bold]{counts['types']}[/bold] types, [bold]{counts['objects']}"
        f"[/bold] objects, [bold]{counts['items']}[/bold] items"
    )


def print_retrieve_result(result: RetrieveResult):
    """Displays the files touched by a special metadata retrieve."""
    console = Console()
    table = Table(title="Retrieved Files", box=box.ROUNDED)
    table.add_column("Direction", style="bold cyan")
    table.add_column("File")
    for file in result.inbound_files:
        table.add_row("inbound", escape(str(file)))
    for file in result.outbound_files:
        table.add_row("outbound", escape(str(file)))

    if not table.row_count:
        console.print("[yellow]No files were retrieved.[/yellow]")
        return
    console.print(table)


def print_package_result(result: PackageGeneratorResult):
    """Displays the package and destructive files created."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Package:", escape(result.package or "-"))
    table.add_row("Destructive Changes:", escape(result.destructive_changes or "-"))
    table.add_row(
        "Destructive Changes Post:", escape(result.destructive_changes_post or "-")
    )

    console.print(
        Panel(
            table,
            title="[bold green]✓ Package Created[/bold green]",
            border_style="green",
        )
    )


def print_permissions(permissions: list[str]):
    """Displays the user permissions of the org as a single column table."""
    console = Console()
    if not permissions:
        console.print("[yellow]No user permissions found.[/yellow]")
        return
    table = Table(title=f"User Permissions ({len(permissions)})", box=box.SIMPLE)
    table.add_column("API Name", style="cyan")
    for permission in sorted(permissions):
        table.add_row(escape(str(permission)))
    console.print(table)


def print_dependency_errors(errors: dict[str, list[DependenciesCheckResponse]]):
    """Displays the broken dependencies found by a check-only repair."""
    console = Console()
    total = sum(len(type_errors) for type_errors in errors.values())
    if not total:
        console.print("[bold green]✓ No dependency errors found.[/bold green]")
        return

    table = Table(title=f"Dependency Errors ({total})", box=box.ROUNDED)
    table.add_column("Type", style="bold cyan")
    table.add_column("Object", style="yellow")
    table.add_column("Item")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Severity")
    table.add_column("Message")
    for type_name, type_errors in errors.items():
        for error in type_errors:
            severity_style = "red" if (error.severity or "").lower() == "error" else "yellow"
            table.add_row(
                escape(type_name),
                escape(error.object or ""),
                escape(error.item or ""),
                str(error.line) if error.line is not None else "",
                f"[{severity_style}]{escape(error.severity or '')}[/{severity_style}]",
                escape(error.message or ""),
            )
    console.print(table)


def print_summary_panel(operation: str, duration_s: float, details: dict[str, Any] | None = None):
    """Displays a short summary of a finished operation."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Operation:", f"[bold]{escape(operation)}[/bold]")
    for key, value in (details or {}).items():
        stats_table.add_row(f"{key}:", escape(str(value)))
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    console.print()
    console.print(
        Panel(
            stats_table,
            title="[bold]✓ Done[/bold]",
            border_style="green",
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
