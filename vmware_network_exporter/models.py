from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Base for every exported record: camelCase on the wire, frozen once built."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SwitchKind(str, Enum):
    DISTRIBUTED = "Distributed"
    STANDARD = "Standard"


class PortBindingMode(str, Enum):
    STATIC = "Static"
    DYNAMIC = "Dynamic"
    EPHEMERAL = "Ephemeral"


class SharesLevel(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    CUSTOM = "Custom"


class ParentType(str, Enum):
    CLUSTER = "Cluster"
    RESOURCE_POOL = "ResourcePool"


class VmKernelService(str, Enum):
    VMOTION = "VMotion"
    MANAGEMENT = "Management"
    FAULT_TOLERANCE_LOGGING = "FaultToleranceLogging"
    STORAGE_TRAFFIC = "StorageTraffic"


# VLAN classification
class NoVlan(RecordModel):
    vlan_type: Literal["None"] = "None"


class Vlan(RecordModel):
    vlan_type: Literal["VLAN"] = "VLAN"
    id: int


class PrivateVlan(RecordModel):
    vlan_type: Literal["PVLAN"] = "PVLAN"
    id: int


class NumericRange(RecordModel):
    start: int
    end: int

    @model_validator(mode="after")
    def _check_order(self) -> "NumericRange":
        if self.start > self.end:
            raise ValueError(f"Rango VLAN invalido: {self.start}-{self.end}")
        return self


class VlanRange(RecordModel):
    """Trunk classification. ``start``/``end`` mirror the first range of ``ranges``."""

    vlan_type: Literal["VLANRange"] = "VLANRange"
    start: int
    end: int
    ranges: List[NumericRange] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ranges(self) -> "VlanRange":
        if self.start > self.end:
            raise ValueError(f"Rango VLAN invalido: {self.start}-{self.end}")
        if self.ranges and (self.ranges[0].start, self.ranges[0].end) != (self.start, self.end):
            raise ValueError("start/end deben coincidir con el primer rango")
        return self

    def render(self) -> str:
        ranges = self.ranges or [NumericRange(start=self.start, end=self.end)]
        return ",".join(f"{item.start}-{item.end}" for item in ranges)


VlanClassification = Annotated[
    Union[NoVlan, Vlan, PrivateVlan, VlanRange],
    Field(discriminator="vlan_type"),
]


# Switches
class PortGroupRecord(RecordModel):
    name: str
    num_ports: int = 0
    vlan_classification: VlanClassification = Field(default_factory=NoVlan)
    # Distributed only; key is unique within the owning switch
    key: Optional[str] = None
    port_binding_mode: Optional[PortBindingMode] = None
    auto_expand: Optional[bool] = None
    # Standard only
    active_nics: Optional[List[str]] = None
    standby_nics: Optional[List[str]] = None

    @property
    def vlan_type(self) -> str:
        return self.vlan_classification.vlan_type


class DistributedSwitchRecord(RecordModel):
    kind: Literal["Distributed"] = "Distributed"
    name: str
    mtu: Optional[int] = None
    max_ports: Optional[int] = None
    num_standalone_ports: Optional[int] = None
    uuid: str = ""
    version: str = ""
    vendor: str = ""
    build: str = ""
    link_discovery_protocol: Optional[str] = None
    contact_info: str = ""
    contact_name: str = ""
    description: str = ""
    num_uplink_ports: int = 0
    uplink_port_names: List[str] = Field(default_factory=list)
    port_groups: List[PortGroupRecord] = Field(default_factory=list)

    @property
    def host_name(self) -> None:
        return None


class StandardSwitchRecord(RecordModel):
    kind: Literal["Standard"] = "Standard"
    name: str
    host_name: str = Field(min_length=1)
    mtu: Optional[int] = None
    num_ports: Optional[int] = None
    uplinks: List[str] = Field(default_factory=list)
    teaming_policy: str = ""
    port_groups: List[PortGroupRecord] = Field(default_factory=list)


SwitchRecord = Annotated[
    Union[DistributedSwitchRecord, StandardSwitchRecord],
    Field(discriminator="kind"),
]


# Hosts
class VmKernelAdapterRecord(RecordModel):
    name: str
    ip_address: str = ""
    subnet_mask: str = ""
    vswitch_name: str = Field(default="", alias="vSwitchName")
    port_group_name: str = ""
    mtu: Optional[int] = None
    mac: str = ""
    dhcp: bool = False
    service_flags: Set[VmKernelService] = Field(default_factory=set)

    @field_serializer("service_flags")
    def _serialize_flags(self, value: Set[VmKernelService]) -> List[str]:
        return sorted(flag.value for flag in value)


class HostNetworkProfile(RecordModel):
    kind: Literal["HostNetwork"] = "HostNetwork"
    host_name: str
    switches: List[SwitchRecord] = Field(default_factory=list)
    vm_kernel_adapters: List[VmKernelAdapterRecord] = Field(default_factory=list)


# Resource pools
class PermissionEntry(RecordModel):
    principal: str
    role: str
    propagate: bool = False


class ResourcePoolRecord(RecordModel):
    kind: Literal["ResourcePool"] = "ResourcePool"
    name: str
    parent_type: ParentType
    parent_name: str
    cpu_shares_level: SharesLevel = SharesLevel.NORMAL
    cpu_shares: int = 0
    cpu_reservation_mhz: int = Field(default=0, alias="cpuReservationMHz")
    cpu_limit_mhz: int = Field(default=-1, alias="cpuLimitMHz")
    cpu_expandable_reservation: bool = True
    mem_shares_level: SharesLevel = SharesLevel.NORMAL
    mem_shares: int = 0
    mem_reservation_mb: int = Field(default=0, alias="memReservationMB")
    mem_limit_mb: int = Field(default=-1, alias="memLimitMB")
    mem_expandable_reservation: bool = True
    contained_workload_names: List[str] = Field(default_factory=list)
    permissions: List[PermissionEntry] = Field(default_factory=list)
    selected_for_migration: bool = False


# Document
ExportRecord = Annotated[
    Union[DistributedSwitchRecord, StandardSwitchRecord, HostNetworkProfile, ResourcePoolRecord],
    Field(discriminator="kind"),
]


class ExportSource(RecordModel):
    server: str = ""
    api_type: str = ""
    api_version: str = ""


class TopologyExport(RecordModel):
    exported_at: str = ""
    exporter_version: str = ""
    source: ExportSource = Field(default_factory=ExportSource)
    records: List[ExportRecord] = Field(default_factory=list)

    def count_by_kind(self) -> dict:
        counts = {"Distributed": 0, "Standard": 0, "HostNetwork": 0, "ResourcePool": 0}
        for record in self.records:
            counts[record.kind] += 1
        return counts
