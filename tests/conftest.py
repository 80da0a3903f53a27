from idp_builder.records.models import DataItem, Event

DAY0 = 738000.0
KM_PER_DEGREE = 111.194929


def make_event(event_id, cruise="JC150", label="", lon=-20.0, lat=30.0, t=DAY0, **kwargs):
    fields = dict(
        event_id=event_id,
        cruise=cruise,
        station_label=label,
        start_time=t,
        end_time=t,
        lon=lon,
        lat=lat,
    )
    fields.update(kwargs)
    return Event(**fields)


def make_item(event_id, bottle, ext_name, value, flag="1", error=0.1, cell="", **kwargs):
    fields = dict(
        event_id=event_id,
        cruise="JC150",
        bottle_number=bottle,
        cell_id=cell,
        extended_name=ext_name,
        value=value,
        error=error,
        flag=flag,
        depth=100.0,
        pressure=101.0,
    )
    fields.update(kwargs)
    return DataItem(**fields)
