"""srcscope CLI - symbol navigation and #ifdef analysis for C/C++/Python trees."""
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from .analyzer.session import BuildProgress, IndexingSession
from .analyzer.store import SqliteSymbolStore, StoreError
from .config import __version__, get_config
from .preprocessor.conditional import analyze
from .preprocessor.decorations import plan_decorations
from .preprocessor.defines import describe_macro, load_defines
from .utils.logger import configure_logging
from .utils.safe_console import SafeConsole

app = typer.Typer(
    name="srcscope",
    help="Browse a source tree: jump to definitions and see which #ifdef blocks are compiled out",
    add_completion=False
)
console = SafeConsole()

# Store management sub-command
db_app = typer.Typer(name="db", help="Manage the per-project symbol store")

PHASE_LABELS = {
    'scanning': "[cyan]Scanning files...",
    'parsing': "[yellow]Parsing",
    'saving': "[magenta]Saving symbols...",
    'complete': "[green]Complete",
}


def _resolve_dir(project_path: str) -> Path:
    """Resolve a project root or exit with an error."""
    path = Path(project_path).resolve()
    if not path.is_dir():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(path))}")
        raise typer.Exit(1)
    return path


def _make_session() -> IndexingSession:
    return IndexingSession(SqliteSymbolStore(get_config().db_name))


def _defines_path(defines: Optional[str], base: Path) -> Path:
    """Explicit --defines path, or the configured options file under ``base``."""
    if defines:
        return Path(defines)
    return base / get_config().options_file


def _symbol_table(title: str, symbols, root: Optional[Path] = None) -> Table:
    table = Table(title=title)
    table.add_column("Symbol", style="cyan")
    table.add_column("Kind", style="yellow")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Line", style="green", justify="right")
    table.add_column("Col", style="green", justify="right")
    table.add_column("Signature", style="dim")

    for symbol in symbols:
        display_path = symbol.file_path
        if root is not None:
            try:
                display_path = str(Path(symbol.file_path).relative_to(root))
            except ValueError:
                pass
        table.add_row(
            escape(symbol.name), symbol.kind, escape(display_path),
            str(symbol.line), str(symbol.column), escape(symbol.signature or ""),
        )
    return table


@app.command()
def build(
    project_path: str = typer.Argument(".", help="Project root to index"),
):
    """Scan the project, extract symbols and rebuild the symbol store."""
    root = _resolve_dir(project_path)
    session = _make_session()

    console.print(f"[bold blue]Indexing project:[/bold blue] {escape(str(root))}\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task(PHASE_LABELS['scanning'], total=None)

        def on_progress(event: BuildProgress):
            description = PHASE_LABELS[event.phase]
            if event.current_file:
                description = f"{description} {escape(event.current_file)}"
            progress.update(
                task,
                description=description,
                completed=event.current,
                total=event.total or None,
            )

        try:
            session.build_full(root, on_progress)
        except StoreError as exc:
            console.print(f"[bold red]Build failed:[/bold red] {escape(str(exc))}")
            raise typer.Exit(1)

    counts = {}
    total = 0
    for entries in session.get_all().values():
        for symbol in entries:
            counts[symbol.kind] = counts.get(symbol.kind, 0) + 1
            total += 1

    table = Table(title="Canonical Symbols", show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for kind in sorted(counts):
        table.add_row(kind, str(counts[kind]))
    table.add_row("[bold]total[/bold]", f"[bold]{total}[/bold]")

    console.print(table)
    console.print(f"[green]✓ Symbol store written to {escape(str(root / get_config().db_name))}[/green]")


def _load_session(root: Path) -> IndexingSession:
    session = _make_session()
    try:
        loaded = session.load_persisted(root)
    except StoreError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1)
    if not loaded:
        console.print(f"[bold red]Error:[/bold red] No symbol store found. Run 'srcscope build {escape(str(root))}' first.")
        raise typer.Exit(1)
    return session


@app.command()
def find(
    name: str = typer.Argument(..., help="Symbol name to look up"),
    project_path: str = typer.Option(".", "--root", "-r", help="Project root"),
):
    """Show every recorded definition of a symbol."""
    root = _resolve_dir(project_path)
    session = _load_session(root)

    definitions = session.find_by_name(name)
    if not definitions:
        console.print(f"[yellow]No definition found for[/yellow] {escape(name)}")
        raise typer.Exit(1)

    console.print(_symbol_table(f"Definitions of {escape(name)}", definitions, root))


@app.command()
def symbols(
    project_path: str = typer.Argument(".", help="Project root"),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Only show this kind (function, class, struct, typedef)"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Only show symbols from files whose path contains this text"),
):
    """List the persisted canonical symbol set."""
    root = _resolve_dir(project_path)
    session = _load_session(root)

    selected = [
        symbol
        for entries in session.get_all().values()
        for symbol in entries
        if (kind is None or symbol.kind == kind) and (file is None or file in symbol.file_path)
    ]
    selected.sort(key=lambda s: (s.file_path, s.line, s.column))

    console.print(_symbol_table(f"Symbols ({len(selected)})", selected, root))


@app.command()
def inactive(
    file_path: str = typer.Argument(..., help="Source file to analyze"),
    defines: Optional[str] = typer.Option(None, "--defines", "-d", help="Options file with the [CFLAGS_sort] section"),
    fold: Optional[bool] = typer.Option(None, "--fold/--no-fold", help="Report fold ranges for inactive blocks"),
    show: bool = typer.Option(False, "--show", help="Print the file with inactive lines dimmed"),
):
    """Report the lines compiled out by #if/#ifdef/#ifndef under the loaded defines."""
    path = Path(file_path)
    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(str(path))}")
        raise typer.Exit(1)

    config = get_config()
    if fold is None:
        fold = config.fold_inactive

    defines_map = load_defines(_defines_path(defines, Path.cwd()), config.defines_section)
    text = path.read_text(encoding='utf-8', errors='replace')
    lines = text.split('\n')

    analysis = analyze(text, defines_map)
    plan = plan_decorations(analysis.inactive, fold=fold, lines=lines)

    if show:
        for number, line in enumerate(lines, start=1):
            style = "dim strike" if analysis.is_inactive(number) else ""
            console.print(Text(f"{number:>5}  {line}", style=style))
        console.print()

    console.print(
        f"[bold]{len(plan.decorations)}[/bold] inactive lines in "
        f"[bold]{len(analysis.blocks)}[/bold] conditional blocks "
        f"({len(defines_map)} defines loaded)"
    )

    if fold:
        table = Table(title="Fold Ranges")
        table.add_column("Start", justify="right", style="cyan")
        table.add_column("End", justify="right", style="cyan")
        table.add_column("Lines", justify="right", style="green")
        for fold_range in plan.folds:
            table.add_row(str(fold_range.start), str(fold_range.end), str(len(fold_range)))
        console.print(table)


@app.command("defines")
def show_defines(
    defines: Optional[str] = typer.Argument(None, help="Options file (default: configured name in the current directory)"),
):
    """Print the defines mapping parsed from the options file."""
    config = get_config()
    path = _defines_path(defines, Path.cwd())
    defines_map = load_defines(path, config.defines_section)

    if not defines_map:
        console.print(f"[yellow]No CFLAGS loaded from {escape(str(path))}[/yellow]")
        return

    table = Table(title=escape(f"[{config.defines_section}] {path}"))
    table.add_column("Macro", style="cyan")
    table.add_column("Value", style="green")
    for name in sorted(defines_map):
        value = defines_map[name]
        table.add_row(escape(name), "[dim](defined)[/dim]" if value is None else escape(value))
    console.print(table)


@app.command()
def macro(
    name: str = typer.Argument(..., help="Macro name"),
    defines: Optional[str] = typer.Option(None, "--defines", "-d", help="Options file"),
):
    """Tell whether a macro is defined by the options file."""
    config = get_config()
    path = _defines_path(defines, Path.cwd())
    defines_map = load_defines(path, config.defines_section)
    source = f"{path.name} [{config.defines_section}]"
    console.print(escape(describe_macro(name, defines_map, source).replace('**', '')))


# =========================================================================
# STORE MANAGEMENT COMMANDS
# =========================================================================

@db_app.command("stats")
def db_stats(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Display symbol counts recorded in a project's store."""
    root = _resolve_dir(project_path)
    store = SqliteSymbolStore(get_config().db_name)

    if not store.exists(root):
        console.print(f"[yellow]No symbol store for {escape(str(root))}[/yellow]")
        raise typer.Exit(1)

    try:
        with store:
            store.open(root)
            stats = store.get_stats()
    except StoreError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1)

    table = Table(title=f"Store Statistics: {escape(str(root))}", show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for kind in sorted(stats['by_kind']):
        table.add_row(kind, str(stats['by_kind'][kind]))
    table.add_row("[bold]total[/bold]", f"[bold]{stats['total_symbols']}[/bold]")
    console.print(table)


@db_app.command("clear")
def db_clear(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Delete a project's symbol store; the next build starts from scratch."""
    root = _resolve_dir(project_path)
    store = SqliteSymbolStore(get_config().db_name)

    if store.remove(root):
        console.print(f"[green]✓ Symbol store removed for {escape(str(root))}[/green]")
    else:
        console.print(f"[yellow]No symbol store for {escape(str(root))}[/yellow]")


# Register db sub-command
app.add_typer(db_app)


def _version_callback(value: bool):
    if value:
        console.print(f"srcscope {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages to stderr"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
):
    """srcscope - symbol navigation and conditional-compilation analysis."""
    if verbose:
        configure_logging("DEBUG")


if __name__ == "__main__":
    app()
