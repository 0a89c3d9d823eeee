"""Command-line interface for inspecting path resolution."""

from __future__ import annotations

import importlib
import logging
from typing import Annotated

import typer

from .config import app_local_folder, create_app_local_folder, windows_roaming_folder
from .resolver import ProjectPathResolver, ResolverConfig

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Show how projectpath locates the running application")

ModuleOption = Annotated[
    str | None, typer.Option("--module", help="Module whose import location identifies the application")
]
ClassPathFirstOption = Annotated[
    bool, typer.Option("--class-path-first", help="Try import locations before the working directory")
]
DebugOption = Annotated[bool, typer.Option("--debug", help="Log why candidates are rejected")]


def _resolver(class_path_first: bool, debug: bool) -> ProjectPathResolver:
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    return ProjectPathResolver(ResolverConfig(debug=debug, class_path_search_first=class_path_first))


def _reference(module: str | None) -> object:
    if module is None:
        return None
    try:
        return importlib.import_module(module)
    except ImportError as exc:
        typer.echo(f"Cannot import module '{module}': {exc}", err=True)
        raise typer.Exit(code=1)


@app.command()
def show(
    module: ModuleOption = None,
    marker: Annotated[
        str | None, typer.Option("--marker", help="File or directory expected inside the project path")
    ] = None,
    class_path_first: ClassPathFirstOption = False,
    debug: DebugOption = False,
) -> None:
    """Print the resolved project path and archive name."""
    resolver = _resolver(class_path_first, debug)
    reference = _reference(module)
    if marker is not None:
        path = resolver.get_project_path(reference, marker)
    else:
        path = resolver.get_project_path(reference)
    archive = resolver.get_archive_name(reference)
    typer.echo(f"Project path: {path or '(unresolved)'}")
    typer.echo(f"Archive name: {archive or '-'}")
    if not path:
        raise typer.Exit(code=1)


@app.command()
def candidates(
    module: ModuleOption = None,
    class_path_first: ClassPathFirstOption = False,
    debug: DebugOption = False,
) -> None:
    """List every candidate in evaluation order with its outcome."""
    resolver = _resolver(class_path_first, debug)
    for candidate in resolver.get_candidates(_reference(module)):
        outcome = candidate.outcome()
        line = f"{outcome.description}: {outcome.path or '-'} [{outcome.status.value}]"
        if outcome.reason:
            line += f" ({outcome.reason})"
        typer.echo(line)


@app.command()
def appdata(
    subfolders: Annotated[list[str] | None, typer.Argument(help="Subfolders below the data root")] = None,
    roaming: Annotated[bool, typer.Option("--roaming", help="Use the roaming profile on Windows")] = False,
    create: Annotated[bool, typer.Option("--create", help="Create the folder if it is missing")] = False,
) -> None:
    """Print the per-user application data folder."""
    parts = list(subfolders) if subfolders else []
    if create:
        directory = create_app_local_folder(*parts, roaming=roaming)
        if not directory.available:
            typer.echo(f"{directory.path} is not a valid data directory: {directory.error}", err=True)
            raise typer.Exit(code=1)
        typer.echo(directory.path)
        return
    typer.echo(windows_roaming_folder(*parts) if roaming else app_local_folder(*parts))


def run() -> None:
    app(prog_name="projectpath")
