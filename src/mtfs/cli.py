"""CLI for MTFS."""

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .config import get_config_path, load_config, save_config
from .exceptions import MTFSError
from .export import load_export
from .merkle import MerkleNode, MerkleTree, TreeDiff, validate_chunk_size

console = Console()
error_console = Console(stderr=True)

SIZE_UNITS = ("B", "KB", "MB", "GB")


def get_project_root() -> Path:
    """Get the project root directory (current working directory)."""
    return Path.cwd()


def format_size(num_bytes: int) -> str:
    """Format a byte count for display, e.g. "1.5 KB" or "12 MB"."""
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    precision = 1 if size < 10 and unit > 0 else 0
    return f"{size:.{precision}f} {SIZE_UNITS[unit]}"


def fail(message: str) -> None:
    """Print an error and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(1)


def setup_logging(verbose: bool) -> None:
    """Route library log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
        force=True,
    )


def build_tree(ctx: click.Context, directory: Path) -> MerkleTree:
    """Build a tree for directory using the chunk size chosen on the command line or in config."""
    try:
        chunk_size = ctx.obj.get("chunk_size")
        if chunk_size is None:
            chunk_size = load_config(get_project_root()).chunk_size
        tree = MerkleTree(chunk_size=chunk_size)
        tree.build(directory)
    except MTFSError as e:
        fail(str(e))

    if tree.warnings:
        error_console.print(
            f"[yellow]Warning:[/yellow] skipped {len(tree.warnings)} unreadable "
            f"entr{'y' if len(tree.warnings) == 1 else 'ies'}"
        )
    return tree


def render_tree(node: MerkleNode, branch: Tree | None = None) -> Tree:
    """Render a node and its children (sorted by name) as a rich Tree."""
    if node.is_file:
        label = (
            f"{escape(node.name)} [dim](File, Size: {node.size} bytes, "
            f"Hash: {node.content_hash[:8]}...)[/dim]"
        )
        if len(node.chunk_hashes) > 1:
            label += f" [cyan]\\[{len(node.chunk_hashes)} chunks][/cyan]"
    else:
        label = f"[bold]{escape(node.name)}[/bold] [dim](Directory, Children: {len(node.children)})[/dim]"

    current = Tree(label) if branch is None else branch.add(label)
    for child in node.sorted_children():
        render_tree(child, current)
    return current


def print_file_objects(tree: MerkleTree) -> None:
    """Print the content index: one entry per distinct content hash."""
    console.print("\n[bold]=== File Objects ===[/bold]")
    for content_hash, node in tree.content_index.items():
        console.print(f"Content Hash: {content_hash}")
        console.print(f"  File: {escape(node.path)}")
        console.print(f"  Size: {node.size} bytes")
        console.print(f"  Chunks: {len(node.chunk_hashes)}")
        if len(node.chunk_hashes) > 1:
            console.print("  Chunk Hashes:")
            for i, chunk_hash in enumerate(node.chunk_hashes):
                console.print(f"    \\[{i}] {chunk_hash}")
        console.print()


def stats_table(tree: MerkleTree) -> Table:
    stats = tree.stats()

    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Total files", str(stats.files))
    table.add_row("Total directories", str(stats.directories))
    table.add_row("Total size", f"{format_size(stats.total_size)} ({stats.total_size} bytes)")
    table.add_row("Tree depth", str(stats.depth))
    table.add_row("Root hash", stats.root_hash)
    return table


def print_diff(diff: TreeDiff) -> None:
    for path in diff.new:
        console.print(f"  [green]new[/green]       {escape(path)}")
    for path in diff.modified:
        console.print(f"  [yellow]modified[/yellow]  {escape(path)}")
    for path in diff.deleted:
        console.print(f"  [red]deleted[/red]   {escape(path)}")


directory_argument = click.argument(
    "directory", type=click.Path(file_okay=True, dir_okay=True, path_type=Path)
)


@click.group()
@click.version_option(version=__version__, prog_name="mtfs")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option(
    "--chunk-size",
    type=int,
    default=None,
    help="Chunk size in bytes (default: from config, 1 MB)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, chunk_size: int | None) -> None:
    """MTFS - Merkle Tree File System.

    Converts a directory into a Merkle tree for integrity verification.
    """
    setup_logging(verbose)
    if chunk_size is not None:
        try:
            validate_chunk_size(chunk_size)
        except MTFSError as e:
            fail(str(e))
    ctx.ensure_object(dict)
    ctx.obj["chunk_size"] = chunk_size


@main.command()
@directory_argument
@click.pass_context
def build(ctx: click.Context, directory: Path) -> None:
    """Build the tree and print its structure, statistics and file objects."""
    console.print(f"Processing directory: [bold]{escape(str(directory))}[/bold]")
    tree = build_tree(ctx, directory)
    console.print(f"Chunk size: {tree.chunk_size} bytes")

    console.print("\n[bold]=== Tree Structure ===[/bold]")
    console.print(render_tree(tree.root))
    console.print()
    console.print(stats_table(tree))
    print_file_objects(tree)


@main.command()
@directory_argument
@click.pass_context
def tree(ctx: click.Context, directory: Path) -> None:
    """Print the tree structure."""
    merkle_tree = build_tree(ctx, directory)
    console.print(render_tree(merkle_tree.root))


@main.command()
@directory_argument
@click.pass_context
def objects(ctx: click.Context, directory: Path) -> None:
    """List file objects by content hash."""
    print_file_objects(build_tree(ctx, directory))


@main.command()
@directory_argument
@click.pass_context
def stats(ctx: click.Context, directory: Path) -> None:
    """Show tree statistics."""
    console.print(stats_table(build_tree(ctx, directory)))


@main.command()
@directory_argument
@click.option(
    "--against",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON export of an earlier build to compare with",
)
@click.pass_context
def verify(ctx: click.Context, directory: Path, against: Path | None) -> None:
    """Check DIRECTORY against an earlier export.

    Pass --against with a file written by `mtfs export` to detect files
    added, changed or removed since then. Without it only the internal
    consistency of a fresh build is checked, which cannot detect changes
    on disk.
    """
    merkle_tree = build_tree(ctx, directory)
    valid = merkle_tree.verify()

    if against is None:
        if valid:
            console.print("[green]Tree is internally consistent.[/green]")
            console.print(
                "[dim]No earlier export given, so changes on disk were not checked. "
                "Use --against EXPORT to compare.[/dim]"
            )
            return
        console.print("[red]Tree integrity check failed.[/red]")
        sys.exit(1)

    try:
        previous = load_export(against)
    except (ValueError, ValidationError) as e:
        fail(f"Cannot read export {against}: {e}")
    diff = previous.compare(merkle_tree)
    if diff.has_changes:
        valid = False
        console.print(f"[bold]{diff.total_changes} file(s) changed since export:[/bold]")
        print_diff(diff)

    if valid:
        console.print("[green]Tree matches the export.[/green]")
    else:
        console.print("[red]Tree integrity check failed.[/red]")
        sys.exit(1)


@main.command()
@directory_argument
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write JSON to this file instead of stdout",
)
@click.pass_context
def export(ctx: click.Context, directory: Path, output: Path | None) -> None:
    """Export the tree to JSON."""
    data = build_tree(ctx, directory).to_json()

    if output is None:
        click.echo(data)
        return

    output.write_text(data + "\n")
    console.print(f"[green]Exported tree to {escape(str(output))}[/green]")


@main.command()
@directory_argument
@click.argument("name")
@click.pass_context
def find(ctx: click.Context, directory: Path, name: str) -> None:
    """Find the first node with the given name."""
    node = build_tree(ctx, directory).find_node(name)
    if node is None:
        fail(f"No node named {name!r}")

    table = Table(title=f"Node {escape(name)}")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("Path", escape(node.path))
    table.add_row("Type", node.type)
    table.add_row("Hash", node.hash)
    if node.is_file:
        table.add_row("Size", format_size(node.size))
        table.add_row("Chunks", str(len(node.chunk_hashes)))
    else:
        table.add_row("Children", str(len(node.children)))
        table.add_row("Total size", format_size(node.total_size))
    console.print(table)


@main.command()
@click.option("--chunk-size", type=int, default=None, help="New chunk size in bytes")
def config(chunk_size: int | None) -> None:
    """Show or set the configured chunk size."""
    project_root = get_project_root()
    try:
        current = load_config(project_root)
        if chunk_size is not None:
            current.chunk_size = validate_chunk_size(chunk_size)
            save_config(current, project_root)
    except MTFSError as e:
        fail(str(e))

    console.print(
        Panel(
            f"Chunk size: [bold]{current.chunk_size}[/bold] bytes ({format_size(current.chunk_size)})\n"
            f"Config file: [dim]{escape(str(get_config_path(project_root)))}[/dim]",
            title="mtfs config",
        )
    )


if __name__ == "__main__":
    main()
