"""
Command-line interface for gridops.

Inspect the differencing schemes a configuration resolves to, and list the
schemes each operator class supports.
"""

import sys

import click

from gridops import __version__


@click.group()
@click.version_option(version=__version__, prog_name="gridops")
def main():
    """
    gridops: finite difference and spectral derivatives on structured meshes.
    """


@main.command()
@click.option("--config", "-c", "config_path", type=click.Path(), default=None, help="YAML differencing configuration")
@click.option("--verbose", "-v", is_flag=True, help="Show resolution diagnostics")
def schemes(config_path, verbose):
    """
    Show the schemes a configuration resolves to on each axis.

    Examples:
        gridops schemes
        gridops schemes --config differencing.yaml
    """
    from gridops.config import DifferencingConfig, load_differencing_config, resolve_differencing
    from gridops.core.location import Axis
    from gridops.operators.registry import OperatorClass, describe_method
    from gridops.utils.exceptions import GridOpsError
    from gridops.utils.grid_logging import configure_logging

    configure_logging(level="INFO" if verbose else "ERROR", use_colors=sys.stdout.isatty())

    try:
        config = load_differencing_config(config_path) if config_path else DifferencingConfig()
        methods = resolve_differencing(config)
    except (FileNotFoundError, ValueError, GridOpsError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for axis in Axis:
        axis_methods = methods.for_axis(axis)
        click.echo(f"{axis.label} differencing:")
        for op_class in OperatorClass:
            click.echo(f"  {op_class.value:<7} {describe_method(axis_methods.method(op_class))}")
        if methods.stagger_grids:
            for op_class in OperatorClass:
                label = f"{op_class.value} (staggered)"
                click.echo(f"  {label:<7} {describe_method(axis_methods.method(op_class, staggered=True))}")

    click.echo(f"Staggered grids: {'on' if methods.stagger_grids else 'off'}")


@main.command("list-methods")
def list_methods():
    """List every scheme code and the tables that implement it."""
    from gridops.operators.registry import TABLES, DiffMethod

    for method in DiffMethod:
        tables = [table.name for table in TABLES.values() if table.is_implemented(method)]
        click.echo(f"{method.value:<6} {method.description:<32} {', '.join(tables)}")


if __name__ == "__main__":
    main()
