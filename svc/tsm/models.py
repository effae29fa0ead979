from __future__ import annotations
from typing import List, Literal, Dict, Tuple
from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError

OidType = Literal["string", "number", "bitreverse", "map", "bitmap"]


class OidInfo(BaseModel):
    """One device OID and how to name and render its value."""
    model_config = ConfigDict(frozen=True)

    oid: str = Field(description="Numeric OID, e.g. 1.3.6.1.4.1.850.1.1.3.1.3.3.1.1.1")
    chancode: str = Field(default="", description="Short channel code used in poll records")
    label: str = Field(default="", description="Human-readable name")
    units: str = Field(default="", description="Display units")
    type: OidType = Field(default="string", description="How the raw value is rendered")
    scaling: float = Field(default=1.0, description="Multiplier for numbers, bit width for bitreverse")
    values: Tuple[str, ...] = Field(default=(), description="Names for map indices or bitmap bits")

    def value_string(self, raw: str) -> str:
        """Render a raw device value; anything unparseable comes back unchanged."""
        try:
            if self.type == "number":
                return f"{float(raw) * self.scaling:.1f}"
            if self.type == "bitreverse":
                width = int(self.scaling)
                return format(reverse_bits(int(raw), width), f"0{width}b")
            if self.type == "map":
                ndx = int(raw)
                return self.values[ndx] if ndx >= 0 else raw
            if self.type == "bitmap":
                return bitmap_string(int(raw), self.values) or "None"
        except (ValueError, IndexError):
            return raw
        return raw


class DeviceGroup(BaseModel):
    """OIDs for one family of controller models."""
    model_config = ConfigDict(protected_namespaces=())

    group_oid: str = Field(description="OID that answers with the model name for this family")
    model_group: str
    model_list: List[str] = Field(default_factory=list)
    static: List[OidInfo] = Field(default_factory=list)
    status: List[OidInfo] = Field(default_factory=list)
    measurements: List[OidInfo] = Field(default_factory=list)
    alarms: List[OidInfo] = Field(default_factory=list)
    faults: List[OidInfo] = Field(default_factory=list)

    @property
    def has_data_oids(self) -> bool:
        return bool(self.status or self.measurements or self.alarms or self.faults)


class StationConfig(BaseModel):
    net: str = ""
    sta: str = ""
    loc: str = ""


class DeviceProfile(BaseModel):
    """
    The OID tables for the identified controller model.

    Resolved once during identification and handed to every component that
    needs per-model lookups.
    """
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model: str
    model_group: str
    static_oids: Tuple[OidInfo, ...] = ()
    status_oids: Tuple[OidInfo, ...] = ()
    measurement_oids: Tuple[OidInfo, ...] = ()
    alarm_oids: Tuple[OidInfo, ...] = ()
    fault_oids: Tuple[OidInfo, ...] = ()

    @property
    def data_oids(self) -> Tuple[OidInfo, ...]:
        return self.status_oids + self.measurement_oids + self.alarm_oids + self.fault_oids

    @property
    def all_oids(self) -> List[str]:
        return [o.oid for o in self.static_oids + self.data_oids]


class TSMConfig(BaseModel):
    """The device table: station codes plus OIDs for every supported model family."""
    general: StationConfig = Field(default_factory=StationConfig)
    emc_oids: List[OidInfo] = Field(default_factory=list)
    device_groups: List[DeviceGroup] = Field(default_factory=list)

    def model_info(self) -> Tuple[List[str], Dict[str, str]]:
        """Return the model-group OIDs to query and a model -> model group map."""
        group_oids = [g.group_oid for g in self.device_groups]
        model_map: Dict[str, str] = {}
        for g in self.device_groups:
            for model in g.model_list:
                model_map[model] = g.model_group
        return group_oids, model_map

    def profile_for(self, model: str, model_group: str) -> DeviceProfile:
        for g in self.device_groups:
            if g.model_group == model_group:
                return DeviceProfile(
                    model=model,
                    model_group=model_group,
                    static_oids=tuple(self.emc_oids) + tuple(g.static),
                    status_oids=tuple(g.status),
                    measurement_oids=tuple(g.measurements),
                    alarm_oids=tuple(g.alarms),
                    fault_oids=tuple(g.faults),
                )
        raise ConfigurationError(f"model group {model_group!r} not found in device table")


def reverse_bits(num: int, width: int) -> int:
    out = 0
    for _ in range(width):
        out = (out << 1) | (num & 1)
        num >>= 1
    return out


def bitmap_string(bits: int, names: Tuple[str, ...]) -> str:
    return ", ".join(name for ndx, name in enumerate(names) if bits & (1 << ndx))


# --- HTTP responses ---------------------------------------------------------

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status (always 'ok' if service is running)")
    mode: str = Field(description="Device backend: 'snmp' (real device) or 'sim' (simulator)")


class StatusField(BaseModel):
    label: str
    value: str
    units: str = ""


class StatusSection(BaseModel):
    name: str
    fields: List[StatusField] = Field(default_factory=list)


class DeviceStatus(BaseModel):
    """One-shot reading of every OID of the identified model."""
    model_config = ConfigDict(protected_namespaces=())

    ts: float = Field(description="Unix timestamp of the query")
    host: str = Field(description="Device address")
    model: str = Field(description="Model name reported by the device")
    model_group: str = Field(description="Model family from the device table")
    sections: List[StatusSection] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response format."""
    detail: str = Field(description="Error message describing what went wrong")
