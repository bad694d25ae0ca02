"""Terminal UI utilities using Rich library for formatted output.

This module provides a unified interface for terminal output, integrating
with the TUI theme system for consistent styling. Listings go to stdout;
errors and warnings go to stderr so they never mix with script output.
"""

from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from config import Config
from extensions.types import Conflict, ResolvedCommandTable, format_path
from utils.tui.theme import Theme, set_theme

# Initialize theme from config; an invalid value is reported by Config.validate()
if Config.THEME in ("dark", "light"):
    set_theme(Config.THEME)

# Global console instances with theme support
console = Console(theme=Theme.get_rich_theme())
err_console = Console(stderr=True, theme=Theme.get_rich_theme())


def _get_colors():
    """Get current theme colors."""
    return Theme.get_colors()


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    """Print a formatted header panel.

    Args:
        title: Main title text
        subtitle: Optional subtitle text
    """
    colors = _get_colors()
    content = f"[bold {colors.primary}]{title}[/bold {colors.primary}]"
    if subtitle:
        content += f"\n[{colors.text_secondary}]{subtitle}[/{colors.text_secondary}]"

    console.print(Panel(content, border_style=colors.primary, box=box.DOUBLE, padding=(0, 2)))


def print_config(config: Dict[str, Any]) -> None:
    """Print configuration in a formatted table.

    Args:
        config: Dictionary of configuration key-value pairs
    """
    colors = _get_colors()
    table = Table(show_header=False, box=box.SIMPLE, border_style=colors.text_muted, padding=(0, 2))
    table.add_column("Key", style=f"{colors.primary} bold")
    table.add_column("Value", style=colors.success)

    for key, value in config.items():
        if isinstance(value, (list, tuple)):
            value = "\n".join(str(item) for item in value) or "(none)"
        table.add_row(key, str(value))

    console.print(table)


def print_command_table(table: ResolvedCommandTable) -> None:
    """Print every resolved command with its description and origin.

    Args:
        table: Resolved command table
    """
    colors = _get_colors()
    if not len(table):
        print_warning("No extensions found. Add scripts to one of the extension directories.")
        return

    grid = Table(
        show_header=True,
        header_style=f"bold {colors.primary}",
        box=box.ROUNDED,
        border_style=colors.text_muted,
        padding=(0, 1),
    )
    grid.add_column("Command", style="command")
    grid.add_column("Description", style="text")
    grid.add_column("Type", style="text.secondary")
    grid.add_column("Source", style="text.muted")

    for source in table:
        descriptor = source.descriptor
        name = format_path(source.path)
        if source.is_alias:
            origin = f"alias of {format_path(source.alias_of)}"
        elif descriptor.is_virtual:
            origin = "(group)"
        else:
            origin = descriptor.script_path
        if table.conflict_for(source.path):
            name += " [shadowed]*[/shadowed]"
        grid.add_row(name, descriptor.description or "", descriptor.script_type.value, origin)

    console.print(grid)
    if table.conflicts:
        console.print(
            f"[{colors.text_muted}]* overrides another extension; "
            f"run `rc conflicts` for details[/{colors.text_muted}]"
        )


def print_command_tree(table: ResolvedCommandTable, prefix: Sequence[str] = ()) -> None:
    """Print the commands below ``prefix`` as a tree.

    Args:
        table: Resolved command table
        prefix: Namespace to start from (default: the root)
    """
    prefix = tuple(prefix)
    label = f"[namespace]{format_path(prefix) if prefix else 'rc'}[/namespace]"
    tree = Tree(label, guide_style=_get_colors().text_muted)

    def add_children(node: Tree, path: tuple) -> None:
        for name in table.children(path):
            child_path = path + (name,)
            source = table.get(child_path)
            style = "namespace" if table.is_namespace(child_path) else "command"
            text = f"[{style}]{name}[/{style}]"
            if source is not None and source.descriptor.description:
                text += f"  [text.secondary]{source.descriptor.description}[/text.secondary]"
            add_children(node.add(text), child_path)

    add_children(tree, prefix)
    console.print(tree)


def print_namespace_help(table: ResolvedCommandTable, namespace: Sequence[str]) -> None:
    """Print the subcommands one level below a namespace."""
    colors = _get_colors()
    namespace = tuple(namespace)
    source = table.get(namespace)
    console.print(f"[bold {colors.primary}]rc {format_path(namespace)}[/bold {colors.primary}]")
    if source is not None and source.descriptor.description:
        console.print(f"[{colors.text_secondary}]{source.descriptor.description}[/]")
    console.print()
    console.print("Subcommands:")
    for name in table.children(namespace):
        child = table.get(namespace + (name,))
        style = "namespace" if table.is_namespace(namespace + (name,)) else "command"
        description = child.descriptor.description if child else None
        line = f"  [{style}]{name}[/{style}]"
        if description:
            line += f"  [text.secondary]{description}[/text.secondary]"
        console.print(line)


def print_conflicts(conflicts: Sequence[Conflict]) -> None:
    """Print every recorded conflict with its winner and shadowed sources.

    Args:
        conflicts: Conflicts from a resolved command table
    """
    colors = _get_colors()
    if not conflicts:
        print_success("No conflicts between extensions")
        return

    for conflict in conflicts:
        console.print(f"[command]{format_path(conflict.path)}[/command]")
        winner = conflict.winner
        console.print(
            f"  [{colors.success}]✓ {winner.descriptor.script_path}[/{colors.success}] "
            f"[text.muted](priority {winner.priority})[/text.muted]"
        )
        for loser in conflict.losers:
            tag = f"alias of {format_path(loser.alias_of)}, " if loser.is_alias else ""
            console.print(
                f"  [shadowed]✗ {loser.descriptor.script_path}[/shadowed] "
                f"[text.muted]({tag}priority {loser.priority})[/text.muted]"
            )


def print_wrap_candidates(
    table: ResolvedCommandTable, namespaces: Sequence[Sequence[str]], wrappers_dir: str
) -> None:
    """Print namespaces that can be wrapped and their custom subcommands."""
    colors = _get_colors()
    if not namespaces:
        print_info("No namespace is marked aliasable")
        return
    console.print(f"[{colors.text_secondary}]Wrappers directory: {wrappers_dir}[/]")
    for namespace in namespaces:
        subcommands = ", ".join(table.children(tuple(namespace)))
        console.print(f"  [namespace]{format_path(namespace)}[/namespace]  {subcommands}")


def print_error(message: str, title: str = "Error") -> None:
    """Print an error message.

    Args:
        message: Error message
        title: Error title (default: "Error")
    """
    colors = _get_colors()
    err_console.print(
        Panel(
            f"[{colors.error}]{message}[/{colors.error}]",
            title=f"[bold {colors.error}]{title}[/bold {colors.error}]",
            border_style=colors.error,
            box=box.ROUNDED,
        )
    )


def print_warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: Warning message
    """
    colors = _get_colors()
    err_console.print(f"[{colors.warning}]{message}[/{colors.warning}]")


def print_success(message: str) -> None:
    colors = _get_colors()
    console.print(f"[{colors.success}]✓ {message}[/{colors.success}]")


def print_info(message: str) -> None:
    colors = _get_colors()
    console.print(f"[{colors.primary}]ℹ {message}[/{colors.primary}]")


def print_log_location(log_file: str) -> None:
    """Print log file location.

    Args:
        log_file: Path to log file
    """
    colors = _get_colors()
    err_console.print(f"[{colors.text_muted}]Detailed logs: {log_file}[/{colors.text_muted}]")
