"""
Checks run on collated stations before any output is produced.
"""

from loguru import logger

from idp_builder.exceptions import StationIntegrityError
from idp_builder.stations.station import StationList


def check_station_cruises(stations: StationList) -> None:
    logger.info("Checking cruise consistency of collated stations")

    bad = [
        f"{station.station_label()} ({station.cruise})"
        for station in stations
        if any(event.cruise != station.cruise for event in station)
    ]
    if bad:
        message = f"{len(bad)} stations mix events of several cruises: {', '.join(bad)}"
        logger.error(message)
        raise StationIntegrityError(message)


def check_unique_events(stations: StationList) -> None:
    seen = {}
    for station in stations:
        for event_id in station.event_ids:
            if event_id in seen:
                message = (
                    f"Event {event_id} assigned to stations {seen[event_id]} "
                    f"and {station.station_label()}"
                )
                logger.error(message)
                raise StationIntegrityError(message)
            seen[event_id] = station.station_label()
    logger.info(f"{len(seen)} events assigned to {len(stations)} stations")
