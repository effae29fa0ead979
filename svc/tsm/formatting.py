from __future__ import annotations
from datetime import datetime, timedelta
from typing import Iterable, List, Mapping

from .models import DeviceProfile, DeviceStatus, OidInfo, StationConfig, StatusField, StatusSection


def format_record(
    interval: timedelta,
    station: StationConfig,
    ts: datetime,
    values: Mapping[str, str],
    data_oids: Iterable[OidInfo],
) -> str:
    """
    One poll record:

        YYYY MM DD HH MM SS NET STA LOC INTERVAL code:value code:value ...

    Channel pairs follow the order of `data_oids`.
    """
    out = ts.strftime("%Y %m %d %H %M %S")
    out += f" {station.net} {station.sta} {station.loc} {interval.total_seconds():.0f}"
    for info in data_oids:
        out += f" {info.chancode}:{info.value_string(values.get(info.oid, ''))}"
    return out


def status_sections(profile: DeviceProfile, values: Mapping[str, str]) -> List[StatusSection]:
    # static values are shown as the device reports them
    sections = [
        StatusSection(
            name="static",
            fields=[
                StatusField(label=o.label, value=values.get(o.oid, ""), units=o.units)
                for o in profile.static_oids
            ],
        )
    ]
    for name, oids in (
        ("status", profile.status_oids),
        ("measurements", profile.measurement_oids),
        ("alarms", profile.alarm_oids),
        ("faults", profile.fault_oids),
    ):
        sections.append(
            StatusSection(
                name=name,
                fields=[
                    StatusField(label=o.label, value=o.value_string(values.get(o.oid, "")), units=o.units)
                    for o in oids
                ],
            )
        )
    return sections


def format_status(status: DeviceStatus, port: int | None = None) -> str:
    """Render a DeviceStatus as the labelled text table printed by `tsm HOST status`."""
    ts = datetime.fromtimestamp(status.ts).astimezone()
    host = f"{status.host}:{port}" if port is not None else status.host
    lines = [
        "",
        f"{'Time of Query':>40}:  {ts.strftime('%Y-%m-%d %H:%M:%S %Z')}",
        f"{'Host':>40}:  {host}",
        f"{'Model':>40}:  {status.model} ({status.model_group})",
    ]
    for section in status.sections:
        lines.append("")
        for f in section.fields:
            lines.append(f"{f.label:>40}:  {f.value} {f.units}".rstrip())
    return "\n".join(lines)
