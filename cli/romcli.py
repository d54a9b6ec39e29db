"""Typer-based command line interface for romcat."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from romcat import CatalogCodec, CatalogScanner, ResultAggregator, ScanConfig  # type: ignore  # noqa: E402
from romcat.codec import export_parquet  # type: ignore  # noqa: E402
from romcat.detector import verify_signature  # type: ignore  # noqa: E402
from romcat.errors import CatalogDecodeError, ScanLocationError  # type: ignore  # noqa: E402
from romcat.formats import RomFormat  # type: ignore  # noqa: E402
from romcat.report import render_error_report  # type: ignore  # noqa: E402
from romcat.scanner import ScanResult  # type: ignore  # noqa: E402
from romcat.schema import Catalog, HeaderItem  # type: ignore  # noqa: E402
from romcat_utils.config import AppConfig, load_config  # type: ignore  # noqa: E402
from romcat_utils.logging import configure_logging  # type: ignore  # noqa: E402

app = typer.Typer(add_completion=False)
console = Console()
STATE = {"verbose": False}

CONFIG_OPTION = typer.Option(Path("romcat.yml"), "--config", help="YAML configuration file.")
DATA_DIR_OPTION = typer.Option(None, "--data-dir", help="Directory holding the catalog and key files.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.")) -> None:
    STATE["verbose"] = verbose
    configure_logging("DEBUG" if verbose else "INFO")


def _app_config(config_path: Path, data_dir: Optional[Path], **overrides: object) -> AppConfig:
    config = load_config(config_path).with_overrides(data_dir=data_dir, **overrides)
    if not STATE["verbose"]:
        configure_logging(config.log_level)
    return config


def _print_catalog(catalog: Catalog) -> None:
    table = Table(show_header=True)
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Icon", justify="center")
    table.add_column("File")
    for item in catalog.items:
        if isinstance(item, HeaderItem):
            table.add_section()
            table.add_row(f"[bold]{item.title}[/bold]", "", "", "")
            continue
        table.add_row(item.title, item.author or "", "yes" if item.icon else "", item.file_name)
    console.print(table)


def _report(result: ScanResult) -> None:
    _print_catalog(result.catalog)
    summary = result.catalog.summary()
    source = "cache" if result.from_cache else "scan"
    typer.echo(f"{summary.total_entries} ROMs ({summary.failed_entries} with problems) from {source}")
    if result.errors:
        render_error_report(result.errors, console)


@app.command()
def scan(
    root: Path = typer.Argument(..., help="Directory to search for ROMs."),
    config_path: Path = CONFIG_OPTION,
    data_dir: Optional[Path] = DATA_DIR_OPTION,
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Number of extraction threads."),
) -> None:
    """Rescan ``root`` and rewrite the persisted catalog."""

    app_config = _app_config(config_path, data_dir, workers=workers)
    config = ScanConfig.from_app_config(app_config, root=str(root))
    try:
        result = CatalogScanner().scan(config)
    except ScanLocationError as exc:
        typer.echo(f"{exc}; please select another location.", err=True)
        raise typer.Exit(code=2)
    if result is None:
        typer.echo("A scan is already running.")
        return
    _report(result)
    if not result.persisted:
        typer.echo(f"Could not save the catalog to {config.catalog_path}", err=True)
        raise typer.Exit(code=1)


@app.command()
def show(
    config_path: Path = CONFIG_OPTION,
    data_dir: Optional[Path] = DATA_DIR_OPTION,
    rescan: bool = typer.Option(False, "--rescan", help="Ignore the persisted catalog."),
) -> None:
    """Show the catalog, scanning only when no usable catalog is persisted."""

    app_config = _app_config(config_path, data_dir)
    config = ScanConfig.from_app_config(app_config)
    try:
        result = CatalogScanner().refresh(config, load_from_cache=not rescan)
    except ScanLocationError as exc:
        typer.echo(f"{exc}; set search_location in {config_path}.", err=True)
        raise typer.Exit(code=2)
    if result is not None:
        _report(result)


def _load_catalog(app_config: AppConfig) -> Catalog:
    codec = CatalogCodec(ScanConfig.from_app_config(app_config).catalog_path)
    try:
        return codec.load()
    except CatalogDecodeError as exc:
        typer.echo(f"{exc}; run 'scan' first.", err=True)
        raise typer.Exit(code=1)


@app.command()
def errors(config_path: Path = CONFIG_OPTION, data_dir: Optional[Path] = DATA_DIR_OPTION) -> None:
    """Print the aggregated error report of the persisted catalog."""

    catalog = _load_catalog(_app_config(config_path, data_dir))
    render_error_report(ResultAggregator.from_catalog(catalog).errors(), console)


@app.command()
def export(
    parquet_path: Path = typer.Argument(Path("roms.parquet"), help="Output Parquet path."),
    config_path: Path = CONFIG_OPTION,
    data_dir: Optional[Path] = DATA_DIR_OPTION,
) -> None:
    """Export the persisted catalog to Parquet."""

    catalog = _load_catalog(_app_config(config_path, data_dir))
    export_parquet(catalog, parquet_path)
    typer.echo(f"Exported catalog to {parquet_path}")


@app.command()
def identify(path: Path = typer.Argument(..., help="ROM file to inspect.")) -> None:
    """Report the format implied by the extension and whether its magic verifies."""

    if not path.is_file():
        raise typer.BadParameter(f"Path {path} does not exist")
    rom_format = RomFormat.from_name(path.name)
    if rom_format is None:
        typer.echo(f"{path.name}: unsupported extension")
        raise typer.Exit(code=1)
    with path.open("rb") as handle:
        verified = verify_signature(handle, rom_format)
    if rom_format.encrypted:
        typer.echo(f"{path.name}: {rom_format.value} (verified by the container extractor)")
    else:
        typer.echo(f"{path.name}: {rom_format.value} ({'signature ok' if verified else 'signature mismatch'})")


if __name__ == "__main__":
    app()
