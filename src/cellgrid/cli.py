"""Command-line interface for cellgrid."""

from __future__ import annotations

import click

from cellgrid import __version__
from cellgrid.config import build_config, dump_config
from cellgrid.errors import CellGridError
from cellgrid.formulas import evaluate, evaluate_strict
from cellgrid.grid import GridStore


@click.group()
@click.version_option(version=__version__, prog_name="cellgrid")
def main() -> None:
    """cellgrid -- spreadsheet grid model and aggregate formula engine."""


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _parse_cells(items: tuple[str, ...]) -> dict[str, str]:
    cells: dict[str, str] = {}
    for item in items:
        if "=" not in item:
            raise click.ClickException(f"Invalid --cell format: {item!r}. Use A1=value.")
        k, v = item.split("=", 1)
        cells[k.strip()] = v
    return cells


# ---------------------------------------------------------------------------
# eval
# ---------------------------------------------------------------------------


@main.command(name="eval")
@click.argument("formula")
@click.option("--cell", "cells", multiple=True, help="Cell content as ID=value (repeatable).")
@click.option("--rows", type=int, default=None, help="Grid rows (default from config).")
@click.option("--cols", type=int, default=None, help="Grid columns (default from config).")
@click.option("--config", "config_path", default=None, type=click.Path(), help="cellgrid.yaml to load.")
@click.option("--strict", is_flag=True, help="Fail instead of echoing an unevaluable formula.")
def eval_cmd(
    formula: str,
    cells: tuple[str, ...],
    rows: int | None,
    cols: int | None,
    config_path: str | None,
    strict: bool,
) -> None:
    """Evaluate FORMULA against cells given with --cell."""
    try:
        cfg = build_config(config_path, rows=rows, cols=cols)
        grid = GridStore(cfg.rows, cfg.cols, max_cols=cfg.max_cols)
        for cell_id, value in _parse_cells(cells).items():
            if grid.set_value(cell_id, value) is None:
                raise click.ClickException(f"Cell {cell_id} is outside the {cfg.rows}x{cfg.cols} grid")
        result = evaluate_strict(formula, grid) if strict else evaluate(formula, grid)
    except CellGridError as exc:
        raise click.ClickException(str(exc))
    click.echo(result)


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@main.command()
@click.option("--config", "config_path", default=None, type=click.Path(), help="cellgrid.yaml to load.")
def config(config_path: str | None) -> None:
    """Print the effective configuration as YAML."""
    try:
        cfg = build_config(config_path)
    except CellGridError as exc:
        raise click.ClickException(str(exc))
    click.echo(dump_config(cfg), nl=False)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.option("--port", type=int, default=8000, help="Port to listen on.")
@click.option("--config", "config_path", default=None, type=click.Path(), help="cellgrid.yaml to load.")
def serve(host: str, port: int, config_path: str | None) -> None:
    """Serve the engine over HTTP."""
    import uvicorn

    from cellgrid.server import create_app

    try:
        app = create_app(config_path=config_path)
    except CellGridError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Serving cellgrid at http://{host}:{port}")
    click.echo("Press Ctrl+C to stop")
    try:
        uvicorn.run(app, host=host, port=port, log_level="warning")
    except KeyboardInterrupt:
        click.echo("\nStopped.")


if __name__ == "__main__":
    main()
