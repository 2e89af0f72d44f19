"""Flattened projection of an export document.

One row per switch x port group and one row per resource pool. VMkernel
adapters and pool permissions have no tabular form and are dropped.
"""
from typing import Dict, List

from ..models import (
    DistributedSwitchRecord,
    HostNetworkProfile,
    PortGroupRecord,
    ResourcePoolRecord,
    StandardSwitchRecord,
    SwitchKind,
    TopologyExport,
    VlanRange,
)

TABLE_ORDER = ["PortGroups", "ResourcePools"]

SCHEMAS = {
    "PortGroups": [
        "Kind",
        "Switch",
        "Host",
        "MTU",
        "SwitchPorts",
        "Uplinks",
        "PortGroup",
        "PortGroupKey",
        "NumPorts",
        "VlanType",
        "VlanId",
        "PortBinding",
        "AutoExpand",
        "ActiveNics",
        "StandbyNics",
    ],
    "ResourcePools": [
        "ResourcePool",
        "ParentType",
        "Parent",
        "CPU level",
        "CPU shares",
        "CPU reservation MHz",
        "CPU limit MHz",
        "Mem level",
        "Mem shares",
        "Mem reservation MB",
        "Mem limit MB",
        "VMs",
        "Selected",
    ],
}


def _vlan_value(portgroup: PortGroupRecord) -> str:
    vlan = portgroup.vlan_classification
    if isinstance(vlan, VlanRange):
        return vlan.render()
    return str(getattr(vlan, "id", ""))


def _switch_rows(switch, host_name: str = "") -> List[Dict[str, object]]:
    if isinstance(switch, DistributedSwitchRecord):
        base = {
            "Kind": SwitchKind.DISTRIBUTED.value,
            "Switch": switch.name,
            "Host": host_name,
            "MTU": switch.mtu if switch.mtu is not None else "",
            "SwitchPorts": switch.max_ports if switch.max_ports is not None else "",
            "Uplinks": ", ".join(switch.uplink_port_names),
        }
    elif isinstance(switch, StandardSwitchRecord):
        base = {
            "Kind": SwitchKind.STANDARD.value,
            "Switch": switch.name,
            "Host": switch.host_name,
            "MTU": switch.mtu if switch.mtu is not None else "",
            "SwitchPorts": switch.num_ports if switch.num_ports is not None else "",
            "Uplinks": ", ".join(switch.uplinks),
        }
    else:
        raise TypeError(f"Tipo de switch no soportado: {type(switch).__name__}")

    if not switch.port_groups:
        return [base]

    rows = []
    for portgroup in switch.port_groups:
        row = dict(base)
        row.update(
            {
                "PortGroup": portgroup.name,
                "PortGroupKey": portgroup.key or "",
                "NumPorts": portgroup.num_ports,
                "VlanType": portgroup.vlan_type,
                "VlanId": _vlan_value(portgroup),
                "PortBinding": portgroup.port_binding_mode.value if portgroup.port_binding_mode else "",
                "AutoExpand": "" if portgroup.auto_expand is None else str(portgroup.auto_expand),
                "ActiveNics": ", ".join(portgroup.active_nics or []),
                "StandbyNics": ", ".join(portgroup.standby_nics or []),
            }
        )
        rows.append(row)
    return rows


def _pool_row(pool: ResourcePoolRecord) -> Dict[str, object]:
    return {
        "ResourcePool": pool.name,
        "ParentType": pool.parent_type.value,
        "Parent": pool.parent_name,
        "CPU level": pool.cpu_shares_level.value,
        "CPU shares": pool.cpu_shares,
        "CPU reservation MHz": pool.cpu_reservation_mhz,
        "CPU limit MHz": pool.cpu_limit_mhz,
        "Mem level": pool.mem_shares_level.value,
        "Mem shares": pool.mem_shares,
        "Mem reservation MB": pool.mem_reservation_mb,
        "Mem limit MB": pool.mem_limit_mb,
        "VMs": ", ".join(pool.contained_workload_names),
        "Selected": str(pool.selected_for_migration),
    }


def project(document: TopologyExport) -> Dict[str, List[Dict[str, object]]]:
    tables: Dict[str, List[Dict[str, object]]] = {name: [] for name in TABLE_ORDER}
    for record in document.records:
        if isinstance(record, (DistributedSwitchRecord, StandardSwitchRecord)):
            tables["PortGroups"].extend(_switch_rows(record))
        elif isinstance(record, HostNetworkProfile):
            for switch in record.switches:
                tables["PortGroups"].extend(_switch_rows(switch, record.host_name))
        elif isinstance(record, ResourcePoolRecord):
            tables["ResourcePools"].append(_pool_row(record))
        else:
            raise TypeError(f"Tipo de registro no soportado: {record.kind}")
    return tables
