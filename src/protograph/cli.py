"""protograph CLI - protograph command."""

from pathlib import Path

import click

from protograph import __version__
from protograph.config import Config, ConfigError, load_config, load_settings
from protograph.constants import SELECT_IMPORTS
from protograph.logs import configure_logging
from protograph.pipeline import RunResult, run_source, with_overrides


def _report(ctx: click.Context, results: list[RunResult]) -> None:
    """Print one line per run and exit with status 1 if any run failed."""
    if not results:
        raise click.ClickException("No schema files to process")

    for result in results:
        if result.ok:
            click.echo(f"{result.source}: wrote {result.output_path}")
            for image in result.images:
                click.echo(f"{result.source}: wrote {image}")
        else:
            click.echo(f"{result.source}: {result.error_type}: {result.error}", err=True)

    if any(not r.ok for r in results):
        ctx.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="protograph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="INI configuration file (default: $PROTOGRAPH_CONFIG or ./protograph.ini)",
)
@click.option(
    "--log",
    "log_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a debug log to this file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None, log_file: Path | None) -> None:
    """protograph - draw type inclusion graphs of protobuf schemas."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(verbose=verbose, log_file=log_file)
    try:
        ctx.obj["settings"] = load_config(config_path) if config_path else load_settings()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@cli.command("render")
@click.argument("source")
@click.option("-s", "--select", "selection", default="", help="Fragments separated by ';', '*' or 'imports'")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="DOT output path (single input only)",
)
@click.option("--svg/--no-svg", default=None, help="Also produce an .svg image")
@click.option("--png/--no-png", default=None, help="Also produce a .png image")
@click.option(
    "--allow-missing-imports/--strict-imports",
    default=None,
    help="Tolerate imports that cannot be opened",
)
@click.option(
    "--show-missing-types/--strict-types",
    default=None,
    help="Draw undeclared types as placeholders instead of failing",
)
@click.pass_context
def render_command(
    ctx: click.Context,
    source: str,
    selection: str,
    output: Path | None,
    svg: bool | None,
    png: bool | None,
    allow_missing_imports: bool | None,
    show_missing_types: bool | None,
) -> None:
    """Render the inclusion graph of SOURCE.

    SOURCE is a schema file, a directory, a glob pattern or list:<file>.
    """
    settings: Config = with_overrides(
        ctx.obj["settings"],
        generate_svg=svg,
        generate_png=png,
        allow_missing_imports=allow_missing_imports,
        show_missing_types=show_missing_types,
    )
    _report(ctx, run_source(source, selection, settings, output=output))


@cli.command("imports")
@click.argument("source")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="DOT output path (single input only)",
)
@click.pass_context
def imports_command(ctx: click.Context, source: str, output: Path | None) -> None:
    """Render the file dependency tree of SOURCE."""
    _report(ctx, run_source(source, SELECT_IMPORTS, ctx.obj["settings"], output=output))


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve_command(host: str, port: int) -> None:
    """Serve the HTTP API."""
    import uvicorn

    uvicorn.run("protograph.main:app", host=host, port=port)


if __name__ == "__main__":
    cli()
