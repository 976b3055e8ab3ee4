"""svnindex CLI — Typer application with youngest, changes, tree, show, message, and init commands."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from svnindex import __version__
from svnindex.config.schema import SvnIndexConfig
from svnindex.svn.api import SvnApi
from svnindex.svn.models import PathChange, PathData

app = typer.Typer(
    name="svnindex",
    help="Extract Subversion history and content for search indexing.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)
logger = logging.getLogger("svnindex")

_FORMATS = ("terminal", "json")

# Shared options
_URL = typer.Option(None, "--url", "-U", help="Repository URL (overrides config)")
_USER = typer.Option(None, "--user", "-u", help="Repository user")
_PASSWORD = typer.Option(None, "--password", "-p", help="Repository password")
_CONFIG = typer.Option(None, "--config", "-c", help="Path to .svnindex.toml")
_FORMAT = typer.Option("terminal", "--format", "-f", help="Output format: terminal | json")
_VERBOSE = typer.Option(False, "--verbose", "-v", help="Verbose output")
_DEBUG = typer.Option(False, "--debug", help="Log every svn command")


def _setup_logging(verbose: bool, debug: bool) -> None:
    if not (verbose or debug):
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(
    config: Optional[str],
    url: Optional[str],
    user: Optional[str],
    password: Optional[str],
    fmt: str = "terminal",
) -> SvnIndexConfig:
    """Load config and apply CLI overrides, exit 2 on failure."""
    from svnindex.config.loader import ConfigError, load_config

    if fmt not in _FORMATS:
        console.print(f"[bold red]Invalid format:[/bold red] {fmt}")
        raise typer.Exit(code=2)

    try:
        cfg = load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if url:
        cfg.repository.url = url
    if user is not None:
        cfg.repository.user = user
    if password is not None:
        cfg.repository.password = password

    if not cfg.repository.url:
        console.print("[bold red]Error:[/bold red] no repository URL (use --url or .svnindex.toml)")
        raise typer.Exit(code=2)
    return cfg


def _build_api(cfg: SvnIndexConfig) -> SvnApi:
    return SvnApi(
        cfg.repository.url,
        cfg.repository.user,
        cfg.repository.password,
        timeout=cfg.svn.timeout_or_none,
        svn_binary=cfg.svn.binary,
    )


def _backend_error(exc: Exception) -> typer.Exit:
    console.print(f"[bold red]svn error:[/bold red] {exc}")
    return typer.Exit(code=2)


def _filtered(cfg: SvnIndexConfig, visit):
    """Wrap *visit* so paths matching the configured filter are dropped."""
    from svnindex.config.loader import compile_filter

    pattern = compile_filter(cfg.scan.filter)
    if pattern is None:
        return visit

    def _visit(change: PathChange) -> None:
        if not pattern.search(change.path):
            visit(change)

    return _visit


# ── youngest ──────────────────────────────────────────────────────────────────


@app.command()
def youngest(
    url: Optional[str] = _URL,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
    config: Optional[str] = _CONFIG,
    verbose: bool = _VERBOSE,
    debug: bool = _DEBUG,
) -> None:
    """Print the youngest (HEAD) revision of the repository."""
    from svnindex.svn.adapter import SvnError

    _setup_logging(verbose, debug)
    cfg = _load(config, url, user, password)
    try:
        revision = _build_api(cfg).get_youngest_revision()
    except SvnError as exc:
        raise _backend_error(exc) from exc
    print(revision)


# ── changes ───────────────────────────────────────────────────────────────────


@app.command()
def changes(
    first: int = typer.Argument(..., min=0, help="First revision (inclusive)"),
    last: Optional[int] = typer.Argument(None, min=0, help="Last revision (default: youngest)"),
    url: Optional[str] = _URL,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
    config: Optional[str] = _CONFIG,
    format: str = _FORMAT,
    verbose: bool = _VERBOSE,
    debug: bool = _DEBUG,
) -> None:
    """List every path changed in a revision range."""
    from svnindex.output import json_report, terminal
    from svnindex.svn.adapter import SvnError
    from svnindex.svn.api import UnknownChangeAction

    _setup_logging(verbose, debug)
    cfg = _load(config, url, user, password, format)
    api = _build_api(cfg)

    try:
        if last is None:
            last = api.get_youngest_revision()
        last = min(last, cfg.scan.max_revision)
        if first > last:
            console.print(f"[bold red]Error:[/bold red] empty range r{first}:r{last}")
            raise typer.Exit(code=2)

        logger.info("Scanning r%d..r%d of %s", first, last, api.url)
        if format == "json":
            api.for_each_change(
                first, last, _filtered(cfg, lambda c: print(json_report.render_changes([c])))
            )
        else:
            rows: List[PathChange] = []
            api.for_each_change(first, last, _filtered(cfg, rows.append))
            terminal.render_changes(rows, console=Console(), title=f"Changes r{first}..r{last}")
    except (SvnError, UnknownChangeAction) as exc:
        raise _backend_error(exc) from exc


# ── tree ──────────────────────────────────────────────────────────────────────


@app.command()
def tree(
    path: str = typer.Argument("/", help="Repository path to list"),
    revision: Optional[int] = typer.Option(None, "--revision", "-r", min=0, help="Revision (default: youngest)"),
    url: Optional[str] = _URL,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
    config: Optional[str] = _CONFIG,
    format: str = _FORMAT,
    verbose: bool = _VERBOSE,
    debug: bool = _DEBUG,
) -> None:
    """List every path below PATH as it exists at a revision."""
    from svnindex.output import json_report, terminal
    from svnindex.svn.adapter import SvnError

    _setup_logging(verbose, debug)
    cfg = _load(config, url, user, password, format)
    api = _build_api(cfg)

    try:
        if revision is None:
            revision = api.get_youngest_revision()
        if format == "json":
            api.for_each_child(
                path, revision, _filtered(cfg, lambda c: print(json_report.render_changes([c])))
            )
        else:
            rows: List[PathChange] = []
            api.for_each_child(path, revision, _filtered(cfg, rows.append))
            terminal.render_changes(rows, console=Console(), title=f"{path}@{revision}")
    except SvnError as exc:
        raise _backend_error(exc) from exc


# ── show ──────────────────────────────────────────────────────────────────────


@app.command()
def show(
    paths: List[str] = typer.Argument(..., help="Repository paths"),
    revision: Optional[int] = typer.Option(None, "--revision", "-r", min=0, help="Revision (default: youngest)"),
    text: bool = typer.Option(False, "--text", "-t", help="Include file text"),
    url: Optional[str] = _URL,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
    config: Optional[str] = _CONFIG,
    format: str = _FORMAT,
    verbose: bool = _VERBOSE,
    debug: bool = _DEBUG,
) -> None:
    """Show metadata, properties, and text of paths at a revision."""
    from svnindex.output import json_report, terminal
    from svnindex.svn.adapter import SvnError

    _setup_logging(verbose, debug)
    cfg = _load(config, url, user, password, format)
    api = _build_api(cfg)

    try:
        if revision is None:
            revision = api.get_youngest_revision()
        workers = max(1, min(cfg.scan.max_threads, len(paths)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            fetched = list(pool.map(lambda p: api.get_path_data(p, revision), paths))
    except SvnError as exc:
        raise _backend_error(exc) from exc

    items: Dict[str, Optional[PathData]] = dict(zip(paths, fetched))
    logger.info("Fetched %d path(s) using %d svn client(s)", len(paths), api.pool.created_count)

    if format == "json":
        print(json_report.render_path_data(items, include_text=text))
    else:
        terminal.render_path_data(items, show_text=text, console=Console())

    if any(data is None for data in fetched):
        raise typer.Exit(code=1)


# ── message ───────────────────────────────────────────────────────────────────


@app.command()
def message(
    revision: int = typer.Argument(..., min=0, help="Revision"),
    url: Optional[str] = _URL,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
    config: Optional[str] = _CONFIG,
    format: str = _FORMAT,
    verbose: bool = _VERBOSE,
    debug: bool = _DEBUG,
) -> None:
    """Print the commit message of a revision."""
    from svnindex.svn.adapter import SvnError

    _setup_logging(verbose, debug)
    cfg = _load(config, url, user, password, format)
    try:
        msg = _build_api(cfg).get_log_message(revision)
    except SvnError as exc:
        raise _backend_error(exc) from exc

    if format == "json":
        print(json.dumps({"revision": revision, "message": msg}))
    else:
        print(msg)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .svnindex.toml in the current directory."""
    from svnindex.config.defaults import DEFAULT_TOML
    from svnindex.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME
    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"svnindex {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """svnindex — Subversion change and content extraction for search indexing."""
