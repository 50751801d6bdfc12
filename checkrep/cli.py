"""CLI entrypoint for checkrep."""

import sys
from pathlib import Path

import click

from . import __version__


@click.group()
@click.version_option(__version__, prog_name="checkrep")
def cli() -> None:
    """checkrep - Representation invariant checking.

    Resolve data-driven rep specs and check JSON/YAML documents against them.
    """


@cli.command()
def kinds() -> None:
    """List the supported rule kinds."""
    from .commands.check import run_kinds

    sys.exit(run_kinds())


@cli.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def resolve(spec_path: Path) -> None:
    """Resolve a rep spec and show its types without checking any data."""
    from .commands.check import run_resolve

    sys.exit(run_resolve(spec_path))


@cli.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("data_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option(
    "--log",
    is_flag=True,
    help="Emit violations as log records instead of a table",
)
def check(spec_path: Path, data_path: Path, output_json: bool, log: bool) -> None:
    """Check every record in DATA_PATH against the root type of SPEC_PATH.

    DATA_PATH is JSON, or YAML when it ends in .yaml/.yml; it holds one
    object or a list of objects.
    """
    from .commands.check import run_check

    if output_json and log:
        raise click.UsageError("--json and --log are mutually exclusive")
    sys.exit(run_check(spec_path, data_path, output_json=output_json, log=log))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
