import datetime
import sys
from typing import List, Optional

import typer
from loguru import logger

from idp_builder.config import DISTANCE_TOLERANCE, TIME_TOLERANCES
from idp_builder.stations.collator import StationCollator
from idp_builder.tables.events import EventsTable

app = typer.Typer()


@app.callback()
def main(log_level: str = typer.Option("INFO", help="loguru level for console output")):
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())


@app.command()
def collate(
    events_file: str = typer.Argument(..., help="Delimited events table"),
    distance_tolerance: float = DISTANCE_TOLERANCE,
    time_tolerance: float = TIME_TOLERANCES["seawater"],
    sep: str = ",",
):
    """Group the events of a table into stations and print a station summary."""
    events = EventsTable.from_csv(events_file, sep=sep)
    collator = StationCollator(events, distance_tolerance, time_tolerance)
    stations = collator.collate(events.ids())
    for record in stations.spreadsheet_records():
        typer.echo(record)
    typer.echo(f"{len(stations)} stations from {stations.event_count()} events", err=True)


@app.command()
def build(
    config: Optional[str] = typer.Option(None, help="YAML file with settings overrides"),
    data_type: Optional[List[str]] = typer.Option(None, help="Data types to build, default all"),
    unified: bool = True,
):
    """Build the product data files."""
    from idp_builder.flow import build_product

    typer.echo("Product build started.")
    start_time = datetime.datetime.now()
    outputs = build_product(config_path=config, data_types=data_type or None, unified=unified)
    for name, path in outputs.items():
        typer.echo(f"{name}: {path}")
    typer.echo(f"Product build finished. Process took {datetime.datetime.now() - start_time}")


if __name__ == "__main__":
    app()
